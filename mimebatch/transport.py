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

"""

The HTTP transport batch requests are sent over.

A transport is anything with an `httplib2.Http`-style ``request()`` method
returning a ``(response, content)`` tuple. `Http` is the default one, an
`httplib2.Http` that logs the whole of each exchange when debug logging is
enabled for its ``request`` and ``response`` loggers.

"""

import http.client
import logging

import httplib2


request_log = logging.getLogger(__name__ + '.request')
response_log = logging.getLogger(__name__ + '.response')

# Exceptions that mean the exchange itself failed, as opposed to a bug.
TRANSPORT_ERRORS = (httplib2.HttpLib2Error, http.client.HTTPException, OSError)


def dump(headers, body):
    """Renders headers and a body for a debug log record."""
    lines = ['%s: %s' % item for item in sorted((headers or {}).items())]
    if isinstance(body, bytes):
        body = body.decode('utf-8', 'replace')
    return '%s\n\n%s' % ('\n'.join(lines), body or '')


class Http(httplib2.Http):

    """An `httplib2.Http` that logs batch exchanges.

    Outgoing batch requests are logged on the ``mimebatch.transport.request``
    logger and their responses on ``mimebatch.transport.response``, both at
    debug level.

    """

    def request(self, uri, method='GET', body=None, headers=None, *args, **kwargs):
        if request_log.isEnabledFor(logging.DEBUG):
            request_log.debug('%s %s (%d bytes)\n%s', method, uri,
                len(body or b''), dump(headers, body))

        response, content = super(Http, self).request(uri, method, body, headers,
            *args, **kwargs)

        if response_log.isEnabledFor(logging.DEBUG):
            response_log.debug('%s %s from %s %s\n%s', response.status,
                response.reason, method, uri, dump(response, content))
        return response, content
