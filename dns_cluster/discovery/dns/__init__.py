from .resolver import (
    DNSResolver as DNSResolver,
    Resolver as Resolver,
    basename as basename,
)
