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

MIME multipart framing of HTTP messages.

Batch requests travel as a ``multipart/mixed`` message whose parts are
``application/http`` messages, each a complete serialized HTTP request. The
batch response mirrors it with one serialized HTTP response per part. Parts
are matched to each other by their ``Content-ID`` headers, never by position.

The batch client itself needs only the request encoder and the response
decoder. `HTTPRequest`, `HTTPParser.requests`, `HTTPResponseMessage` and
`response_content_id()` serve the other side of the exchange: batch
processors, and the stand-in batch processors of the tests.

"""

from collections import namedtuple
import email.parser
import email.policy
from email.generator import Generator
from email.message import Message
from io import StringIO
import re
from urllib.parse import urlparse, urlunparse


CRLF = '\r\n'

# Headers are never folded, and lines end in CRLF as HTTP requires.
HTTP_POLICY = email.policy.compat32.clone(linesep=CRLF, max_line_length=0)

HTTP_CONTENT_TYPES = ('application/http', 'application/http-request',
                      'application/http-response')

_HEADER_END = re.compile(br'\r?\n\r?\n')
_LINE_END = re.compile(br'\r?\n')


def parse_uri(uri):
    """Parse a URI. Return the scheme, the host, and the rest of the URI."""
    parts = list(urlparse(uri))
    parts[2] = parts[2] or '/'
    return parts[0], parts[1], urlunparse(['', ''] + parts[2:5] + [''])


def make_content_id(batch_id, sequence):
    """Returns the ``Content-ID`` header value for subrequest number
    `sequence` of the batch identified by `batch_id`."""
    return '<%s+%d>' % (batch_id, sequence)


def response_content_id(content_id):
    """Returns the ``Content-ID`` a batch processor gives the response to the
    subrequest with the given ``Content-ID``."""
    value = content_id.strip()
    if value.startswith('<') and value.endswith('>'):
        value = value[1:-1]
    return '<response-%s>' % value


def parse_content_id(header):
    """Parses a ``Content-ID`` header value made by `make_content_id()`, or
    a response's version of one, into a tuple of the batch id and the
    subrequest sequence number.

    If the header is missing or was not made by `make_content_id()`, a
    `ParserError` is raised.

    """
    if header is None:
        raise ParserError('Part has no Content-ID header')
    value = header.strip()
    if value.startswith('<') and value.endswith('>'):
        value = value[1:-1]
    if value.startswith('response-'):
        value = value[len('response-'):]
    batch_id, sep, sequence = value.rpartition('+')
    if not sep:
        raise ParserError('Invalid Content-ID header %r' % header)
    try:
        return batch_id.strip(), int(sequence)
    except ValueError:
        raise ParserError('Invalid Content-ID header %r' % header)


def serialize_request(method, uri, headers=None, body=None):
    """Serializes an HTTP request into the text of an ``application/http``
    part.

    The request line carries only the path and query of `uri`; the host is
    moved into a ``Host`` header. Bytes of `body` that are not UTF-8 survive
    as surrogate escapes, so encode the final batch body with
    ``errors='surrogateescape'``.

    """
    scheme, host, path = parse_uri(uri)
    lines = ['%s %s HTTP/1.1' % (method.upper(), path)]

    hdrs = {}
    for header, value in (headers or {}).items():
        hdrs[header.lower()] = value
    if host:
        hdrs.setdefault('host', host)
    # Prevent compression as it's unlikely to survive batching.
    hdrs['accept-encoding'] = 'identity'

    if isinstance(body, str):
        body = body.encode('utf-8')
    body = body or b''
    if body:
        hdrs['content-length'] = str(len(body))
    else:
        hdrs.pop('content-length', None)

    for header, value in hdrs.items():
        lines.append('%s: %s' % (header, value))
    text = CRLF.join(lines) + CRLF + CRLF
    return text + body.decode('utf-8', 'surrogateescape')


class BadRequestException(Exception): pass
class BadResponseException(Exception): pass
class ParserError(Exception): pass


def _split_message(message):
    if isinstance(message, str):
        message = message.encode('utf-8', 'surrogateescape')
    match = _HEADER_END.search(message)
    if match is None:
        head, data = message, b''
    else:
        head, data = message[:match.start()], message[match.end():]
    lines = [line.decode('latin-1') for line in _LINE_END.split(head)]
    return lines[0], lines[1:], data


def _unfold_headers(lines):
    headers = []
    for line in lines:
        if not line.strip():
            continue
        if line[0] in ' \t' and headers:
            name, value = headers[-1]
            headers[-1] = (name, '%s %s' % (value, line.strip()))
            continue
        if ':' not in line:
            raise ValueError('Malformed header line %r' % line)
        header, value = line.split(':', 1)
        headers.append((header.strip().lower(), value.strip()))
    return headers


class HTTPRequest(object):
    def __init__(self, request, request_id=None):
        self.request_id = request_id

        request_line, lines, self.data = _split_message(request)
        parts = request_line.split()
        try:
            self.command = parts[0]
            self.request_uri = parts[1]
            self.version = parts[2]
        except IndexError:
            raise BadRequestException('Malformed request line %r' % request_line)
        self.scheme, self.host, self.path = parse_uri(self.request_uri)

        try:
            self.headers = _unfold_headers(lines)
        except ValueError as exc:
            raise BadRequestException(str(exc))
        if not self.host:
            self.host = self.getheader('host', '')

    def getheader(self, name, default=None):
        name = name.lower()
        for header, value in self.headers:
            if header == name:
                return value
        return default


class HTTPResponse(object):
    def __init__(self, response):
        status_line, lines, self.data = _split_message(response)

        # Batch processors may leave the protocol version off.
        parts = status_line.split(None, 1)
        if parts and parts[0].startswith('HTTP/'):
            self.version = parts[0]
            parts = parts[1].split(None, 1) if len(parts) > 1 else []
        else:
            self.version = 'HTTP/1.1'
        try:
            self.status = int(parts[0])
        except (IndexError, ValueError):
            raise BadResponseException('Malformed status line %r' % status_line)
        try:
            self.message = parts[1].strip()
        except IndexError:
            self.message = ''  # sometimes there is no message

        try:
            self.headers = _unfold_headers(lines)
        except ValueError as exc:
            raise BadResponseException(str(exc))

        # Anything past the declared length is framing, not body.
        length = self.getheader('content-length')
        if length is not None and length.isdigit():
            self.data = self.data[:int(length)]

    def getheader(self, name, default=None):
        name = name.lower()
        for header, value in self.headers:
            if header == name:
                return value
        return default


Part = namedtuple('Part', 'content_id content_type payload')


class HTTPParser(object):

    """Splits a MIME multipart message into its HTTP message parts.

    Parameter `message` is the message as bytes or text. If it is only the
    body of an HTTP entity, give its ``Content-Type`` header value as
    `content_type` so the multipart boundary can be found.

    If the message is not a multipart message at all, a `ParserError` is
    raised. Problems with individual parts are left for whoever reads those
    parts, through `parts`, `requests` or `responses`.

    """

    def __init__(self, message, content_type=None):
        self._parser = email.parser.BytesParser()
        self.parts = []
        if isinstance(message, str):
            message = message.encode('utf-8', 'surrogateescape')
        if content_type is not None:
            message = ('Content-Type: %s\r\nMIME-Version: 1.0\r\n\r\n'
                       % content_type).encode('latin-1') + message
        self._parse(message)

    def _parse(self, data):
        msg = self._parser.parsebytes(data)
        if not msg.is_multipart():
            raise ParserError('Message is not a MIME multipart message')
        for part in msg.walk():
            if part.get_content_maintype() == 'multipart':
                continue  # walk will descend into child messages
            payload = part.get_payload(decode=True)
            if payload is None:
                payload = b''
            self.parts.append(Part(part.get('content-id'),
                                   part.get_content_type(), payload))

    @property
    def requests(self):
        requests = []
        for part in self.parts:
            if part.content_type not in HTTP_CONTENT_TYPES:
                raise ParserError("Unrecognized message type: '%s'" % part.content_type)
            requests.append(HTTPRequest(part.payload, request_id=part.content_id))
        return requests

    @property
    def responses(self):
        responses = []
        for part in self.parts:
            if part.content_type not in HTTP_CONTENT_TYPES:
                raise ParserError("Unrecognized message type: '%s'" % part.content_type)
            responses.append(HTTPResponse(part.payload))
        return responses


class HTTPGenerator(Generator):
    def __init__(self, outfp, mangle_from_=False, maxheaderlen=None, policy=HTTP_POLICY, write_headers=True):
        self.write_headers = write_headers
        Generator.__init__(self, outfp, mangle_from_, maxheaderlen, policy=policy)

    def _handle_application_http(self, msg):
        # Called by Generator to write MIME messages with a content-type of
        # application/http. The payload is already a complete HTTP message.
        # Non-UTF-8 body bytes are surrogate escapes here, which get_payload()
        # would replace.
        payload = msg._payload
        if payload is None:
            return
        if not isinstance(payload, str):
            raise TypeError('string payload expected: %s' % type(payload))
        self._fp.write(payload)

    def _write_headers(self, msg):
        if self.write_headers:
            Generator._write_headers(self, msg)


class HTTPMessage(Message):
    def as_string(self, unixfrom=False, write_headers=True):
        fp = StringIO()
        g = HTTPGenerator(fp, write_headers=write_headers)
        g.flatten(self, unixfrom=unixfrom)
        return fp.getvalue()


class MultipartHTTPMessage(HTTPMessage):
    def __init__(self):
        HTTPMessage.__init__(self)
        self.set_type('multipart/mixed')


class HTTPPartMessage(HTTPMessage):
    def __init__(self, http_message, content_id):
        HTTPMessage.__init__(self)
        self['Content-Type'] = 'application/http'
        self['Content-ID'] = content_id
        self['Content-Transfer-Encoding'] = 'binary'
        self.set_payload(http_message)


class HTTPRequestMessage(HTTPPartMessage):
    pass


class HTTPResponseMessage(HTTPPartMessage):
    pass
