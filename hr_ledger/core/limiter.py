from slowapi import Limiter
from slowapi.util import get_remote_address

# Shared limiter; settlement writes are throttled per client address
limiter = Limiter(key_func=get_remote_address)
