from pocketoauth.handlers.authenticate import AuthenticateHandler
from pocketoauth.handlers.authorize import AuthorizeHandler
from pocketoauth.handlers.token import TokenHandler

__all__ = ["AuthenticateHandler", "AuthorizeHandler", "TokenHandler"]
