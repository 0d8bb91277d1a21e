from rest_framework import authentication


class SessionAuthentication(authentication.SessionAuthentication):
    """Session auth that reports a missing login as 401 rather than 403."""

    def authenticate_header(self, request):
        return 'Session'
