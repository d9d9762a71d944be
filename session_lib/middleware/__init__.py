from .session import SessionMiddleware, access_denied_response, require_login

__all__ = [
	"SessionMiddleware",
	"access_denied_response",
	"require_login",
]
