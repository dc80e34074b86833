import uuid


CORRELATION_HEADER = 'X-Correlation-ID'


class CorrelationIdMiddleware:
    """
    Attaches a correlation id to every request and echoes it on the response.

    An id supplied by the caller in X-Correlation-ID is reused so that gateway
    retries and client logs can be tied to server-side audit records.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        correlation_id = request.META.get('HTTP_X_CORRELATION_ID') or str(uuid.uuid4())
        request.correlation_id = correlation_id

        response = self.get_response(request)
        response[CORRELATION_HEADER] = correlation_id
        return response
