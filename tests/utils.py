# Copyright (c) 2009-2010 Six Apart Ltd.
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# * Redistributions of source code must retain the above copyright notice,
#   this list of conditions and the following disclaimer.
#
# * Redistributions in binary form must reproduce the above copyright notice,
#   this list of conditions and the following disclaimer in the documentation
#   and/or other materials provided with the distribution.
#
# * Neither the name of Six Apart Ltd. nor the names of its contributors may
#   be used to endorse or promote products derived from this software without
#   specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

import logging
import sys
import threading

import httplib2

from mimebatch.multipart import (HTTPParser, HTTPResponseMessage,
    MultipartHTTPMessage, response_content_id)


def log():
    logging.basicConfig(level=logging.DEBUG, stream=sys.stderr,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s')


def echo(request):
    """Answers a subrequest with its own body, or ``{}``."""
    return 200, request.data or b'{}'


def multipart_response(parts, boundary='foomfoomfoom', status='200'):
    """Builds a batch response from ``(content_id, subresponse text)``
    tuples, for when a test needs the exact bytes."""
    content = ''
    for content_id, text in parts:
        content += '--%s\r\n' % boundary
        content += 'Content-Type: application/http\r\n'
        content += 'Content-ID: %s\r\n\r\n' % content_id
        content += text + '\r\n'
    content += '--%s--\r\n' % boundary
    response = httplib2.Response({
        'status': status,
        'content-type': 'multipart/mixed; boundary="%s"' % boundary,
    })
    return response, content.encode('utf-8')


class StubHttp(object):

    """A batch processor standing in for the transport.

    Each subrequest of a batch request is given to `handler`, which returns
    a status and a body for its subresponse, or `None` to leave it out.
    Batch requests are recorded in `calls`. If `gate` is given, each request
    waits for it to be set before answering.

    """

    def __init__(self, handler=echo, reverse=False, gate=None, error=None):
        self.handler = handler
        self.reverse = reverse
        self.gate = gate
        self.error = error
        self.calls = []
        self.lock = threading.Lock()

    def request(self, uri, method='GET', body=None, headers=None, **kwargs):
        with self.lock:
            self.calls.append({'uri': uri, 'method': method, 'body': body,
                'headers': headers})
        if self.gate is not None:
            self.gate.wait(10)
        if self.error is not None:
            raise self.error

        parser = HTTPParser(body, content_type=headers['Content-Type'])
        msg = MultipartHTTPMessage()
        requests = parser.requests
        if self.reverse:
            requests.reverse()
        for request in requests:
            answer = self.handler(request)
            if answer is None:
                continue
            status, content = answer
            if isinstance(content, bytes):
                content = content.decode('utf-8', 'surrogateescape')
            text = ('HTTP/1.1 %d Whatever\r\nContent-Type: application/json\r\n\r\n%s'
                % (status, content))
            msg.attach(HTTPResponseMessage(text, response_content_id(request.request_id)))

        content = msg.as_string(write_headers=False)
        response = httplib2.Response({
            'status': '200',
            'content-type': msg['Content-Type'],
        })
        return response, content.encode('utf-8', 'surrogateescape')

    def requests(self, call):
        """Returns the subrequests of the recorded batch request `call`."""
        return HTTPParser(call['body'],
            content_type=call['headers']['Content-Type']).requests
