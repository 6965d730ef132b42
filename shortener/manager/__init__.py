from .generator import AliasGenerator, generate_alias, generate_id
from .shorturl_manager import ShortURLManager

__all__ = ["AliasGenerator", "ShortURLManager", "generate_alias", "generate_id"]
