import logging
from django.utils.deprecation import MiddlewareMixin
from django.http import JsonResponse

logger = logging.getLogger(__name__)


class GlobalExceptionMiddleware(MiddlewareMixin):
    """
    Catches errors raised outside DRF views (admin, health probe, plain Django views).
    API paths get the same JSON error shape as the DRF handler.
    """
    def process_exception(self, request, exception):
        user = getattr(request, 'user', None)
        extra = {}
        if user is not None and user.is_authenticated:
            extra['user_id'] = user.pk

        logger.exception("Unhandled error on %s %s", request.method, request.path, extra=extra)
        if request.path.startswith('/api/'):
            return JsonResponse(
                {"error": "Internal Server Error", "code": "server_error"},
                status=500
            )
        return None
