"""
Auth package for the Shortener API.

Resolves the caller's owner id from HTTP Basic credentials. The core service
treats that id as an opaque foreign key; nothing here is known to it.
"""
