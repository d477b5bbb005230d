"""
Test Helpers
============
Fake HTTP objects standing in for the Gemini REST endpoint.
"""


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, payload=None, text=''):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeSession:
    """
    Records every POST and replays the given responses in order.

    The last response is repeated once the list runs out. Exceptions in the
    list are raised instead of returned.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({'url': url, 'json': json, 'headers': headers, 'timeout': timeout})
        if not self.responses:
            raise AssertionError("FakeSession has no responses left")
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    def prompt(self, index=0):
        """Prompt text of the index-th request."""
        return self.calls[index]['json']['contents'][0]['parts'][0]['text']

    def close(self):
        self.closed = True


def gemini_text(text):
    """Successful generateContent reply carrying text."""
    return FakeResponse(200, {
        'candidates': [{'content': {'role': 'model', 'parts': [{'text': text}]}}]
    })


def gemini_error(status_code, message='', status='', reason=None):
    """Error reply shaped like the Generative Language API's."""
    error = {'code': status_code, 'message': message, 'status': status}
    if reason:
        error['details'] = [{'@type': 'type.googleapis.com/google.rpc.ErrorInfo', 'reason': reason}]
    return FakeResponse(status_code, {'error': error})


class FakeClock:
    """Manual monotonic clock; sleeping advances it."""

    def __init__(self, start=0.0):
        self.now = start
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds):
        self.now += seconds
