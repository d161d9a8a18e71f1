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

The batch HTTP client collects subrequests into a batch request, sends them
to a batch processor as few MIME multipart requests as their credentials
allow, and matches the subresponses back to the subrequests that asked for
them.

Each subrequest yields exactly one `Result`, in the order the subrequests were
added, however the batch was split up or the batch processor ordered its
subresponses. Most failures belong to one subrequest, or to the subrequests
that shared a failed exchange, and are reported through their results; a
batch request as a whole only fails when nothing could be sent at all.

"""

from concurrent.futures import ThreadPoolExecutor, wait
import json
import logging
import threading
import time
from urllib.parse import urljoin, urlparse
import uuid

import httplib2

from mimebatch.credentials import partition
from mimebatch.multipart import (MultipartHTTPMessage, HTTPRequestMessage,
    HTTPParser, HTTPResponse, HTTP_CONTENT_TYPES, BadResponseException,
    ParserError, make_content_id, parse_content_id, serialize_request)
from mimebatch.transport import Http, TRANSPORT_ERRORS

log = logging.getLogger(__name__)

DEFAULT_MAX_BATCH_SIZE = 1000
DEFAULT_MAX_WORKERS = 4
BATCH_PATH = '/batch'

# How often a waiting batch checks for cancellation, in seconds.
POLL_INTERVAL = 0.05


class BatchError(Exception):
    """An Exception raised when a batch request cannot be opened, added to,
    or completed, and the base of every error a `Result` can carry."""
    pass


class BuildError(BatchError):
    """A subrequest could not be built by whatever produced it."""

    def __init__(self, error, tag=None):
        self.error = error
        self.tag = tag
        super(BuildError, self).__init__('Could not build subrequest: %s' % (error,))
        if isinstance(error, BaseException):
            self.__cause__ = error


class TransportError(BatchError):

    """The exchange carrying a subrequest failed before the batch processor
    could handle any of its subrequests.

    Every subrequest of the exchange carries the same `TransportError`. When
    `BatchRequest.do()` raises one because no exchange succeeded, `results`
    holds the results it would have returned.

    """

    results = None


class NonBatchResponseError(TransportError):
    """An exception raised when the batch processor answers with an HTTP
    status code other than 2xx."""
    def __init__(self, status, reason, content=None):
        self.status = status
        self.reason = reason
        self.content = content
        super(NonBatchResponseError, self).__init__(
            'Received non-batch response: %d %s' %
            (self.status, self.reason)
        )


class CredentialsError(TransportError):
    """The credentials for an exchange could not supply a token."""
    pass


class FramingError(BatchError):
    """A subresponse could not be found in or decoded from the batch
    response."""
    pass


class ApplicationError(BatchError):

    """The batch processor answered a subrequest with an HTTP status code
    other than 2xx.

    The subresponse is kept as `response` (an `httplib2.Response`) and its
    body as `body`, along with the `tag` of the failed subrequest.

    """

    def __init__(self, response, body, tag=None):
        self.response = response
        self.status = response.status
        self.reason = response.reason
        self.body = body
        self.tag = tag
        detail = _error_message(body) or self.reason
        super(ApplicationError, self).__init__(
            'Subrequest failed: %d %s' % (self.status, detail))


class DecodeError(BatchError):
    """A successful subresponse's body could not be decoded into the
    subrequest's result."""
    def __init__(self, message, body, tag=None):
        self.body = body
        self.tag = tag
        super(DecodeError, self).__init__(message)


class BatchCancelledError(BatchError):
    """The batch request was cancelled before the subrequest completed."""
    pass


class BatchTimeoutError(BatchCancelledError):
    """The batch request ran out of time before the subrequest completed."""
    pass


def _error_message(body):
    # Batch processors for JSON APIs explain errors as {"error": {"message": ...}}.
    try:
        content = json.loads(body)
    except (TypeError, ValueError):
        return None
    if not isinstance(content, dict):
        return None
    error = content.get('error')
    if isinstance(error, dict):
        return error.get('message')
    if isinstance(error, str):
        return error
    return None


class Result(object):

    """The outcome of one subrequest of a batch request.

    `tag` is the tag the subrequest was added with. If the subrequest
    succeeded, `error` is `None` and `result` is the decoded subresponse body
    (or `None` if there was no decoder or no body). Otherwise `result` is
    `None` and `error` is a `BatchError` saying what went wrong. `response`
    is the subresponse, if one was received.

    """

    __slots__ = ('tag', 'result', 'error', 'response')

    def __init__(self, tag=None, result=None, error=None, response=None):
        self.tag = tag
        self.result = result
        self.error = error
        self.response = response

    @property
    def ok(self):
        return self.error is None

    def __repr__(self):
        if self.error is not None:
            return '<Result %r error=%r>' % (self.tag, self.error)
        return '<Result %r result=%r>' % (self.tag, self.result)


class Request(object):

    """A subrequest of a batched HTTP request.

    A batch request comprises one or more `Request` instances. Once the batch
    request is performed, the subresponses are decoded into `Result`
    instances for the associated `Request` instances.

    `Request` instances are made by `BatchRequest.add_request()` and are not
    changed afterward.

    """

    def __init__(self, sequence, reqinfo, result=None, tag=None, credentials=None, error=None):
        """Initializes the `Request` instance.

        Parameter `sequence` is the subrequest's number within its batch,
        from which its ``Content-ID`` is made. Parameter `reqinfo` is the
        HTTP request to perform, specified as a mapping of keyword arguments
        suitable for passing to an `httplib2.Http.request()` call.

        Parameter `result` is a callable to which the decoded JSON body of a
        successful subresponse is given; what it returns becomes the
        `Result.result`. This is usually a class, or a class's constructor
        method for API data. Parameter `tag` is any value the caller wants to
        see again on the `Result`. Parameter `credentials`, if given,
        replaces the batch's credentials for this subrequest.

        A `Request` with an `error` was never built; its `Result` is that
        error, and it is never sent.

        """
        self.sequence = sequence
        self.reqinfo = reqinfo
        self.result = result
        self.tag = tag
        self.credentials = credentials
        self.error = error

    def __repr__(self):
        if self.reqinfo is None:
            return '<Request %d (unbuilt)>' % self.sequence
        return '<Request %d %s %s>' % (self.sequence,
            self.reqinfo.get('method', 'GET'), self.reqinfo['uri'])

    def as_message(self, batch_id):
        """Converts this `Request` instance into a
        `mimebatch.multipart.HTTPRequestMessage` suitable for adding to a
        `mimebatch.multipart.MultipartHTTPMessage` instance."""
        objreq = self.reqinfo
        requesttext = serialize_request(objreq.get('method', 'GET'), objreq['uri'],
            objreq.get('headers'), objreq.get('body'))
        return HTTPRequestMessage(requesttext, make_content_id(batch_id, self.sequence))

    def decode_response(self, part):
        """Decodes the given subresponse into a `Result` for this `Request`.

        Parameter `part` is the `mimebatch.multipart.Part` containing the
        subresponse. If the part can't be decoded into an HTTP response, the
        `Result` carries a `FramingError`.

        """
        if part.content_type not in HTTP_CONTENT_TYPES:
            return Result(self.tag, error=FramingError(
                'Batch response included a part that was not an HTTP response message: %s'
                % part.content_type))
        try:
            subresponse = HTTPResponse(part.payload)
        except BadResponseException as exc:
            return Result(self.tag, error=FramingError(
                'Could not decode subresponse %d: %s' % (self.sequence, exc)))

        info = {}
        for header, value in subresponse.headers:
            if header in info:
                info[header] = '%s, %s' % (info[header], value)
            else:
                info[header] = value
        info['status'] = str(subresponse.status)
        httpresponse = httplib2.Response(info)
        httpresponse.reason = subresponse.message

        return self.bind(httpresponse, subresponse.data)

    def bind(self, response, body):
        """Makes the `Result` of this `Request` from its subresponse.

        A 2xx `response` has its `body` decoded as JSON and given to this
        `Request`'s result callable; if either step fails, the `Result`
        carries a `DecodeError`. Any other `response` makes an
        `ApplicationError`.

        """
        if not 200 <= response.status < 300:
            return Result(self.tag, error=ApplicationError(response, body, self.tag),
                response=response)

        if self.result is None or not body.strip():
            return Result(self.tag, response=response)

        try:
            content = json.loads(body)
        except ValueError as exc:
            error = DecodeError('Subresponse %d is not JSON: %s' % (self.sequence, exc),
                body, self.tag)
            error.__cause__ = exc
            return Result(self.tag, error=error, response=response)

        try:
            value = self.result(content)
        except Exception as exc:
            error = DecodeError('Could not decode subresponse %d: %s' % (self.sequence, exc),
                body, self.tag)
            error.__cause__ = exc
            return Result(self.tag, error=error, response=response)

        return Result(self.tag, result=value, response=response)


class BatchRequest(object):

    """A collection of HTTP requests that should be performed in a batch.

    Subrequests are added with `add_request()`, then `do()` performs the
    whole batch and returns the results. A `BatchRequest` can be performed
    only once, and is not meant to be added to from several threads at
    once.

    """

    def __init__(self, endpoint=None, http=None, credentials=None,
                 max_batch_size=DEFAULT_MAX_BATCH_SIZE,
                 max_workers=DEFAULT_MAX_WORKERS,
                 continue_on_build_error=False, batch_id=None):
        """Configures the batch request.

        Parameter `endpoint` is the URL of the batch processor. If it names
        only a site, the batch processor is taken to be the ``/batch``
        resource at its root.

        Parameter `http` is the transport to send the batch with; by default
        each worker thread gets its own `mimebatch.transport.Http`. A given
        transport is shared by all worker threads, so it must be thread safe
        unless `max_workers` is 1.

        Parameter `credentials` authorizes every subrequest that has none of
        its own. Without any, authorization is left to the transport.

        Parameter `max_batch_size` is the most subrequests the batch
        processor accepts in one batch; bigger groups are sent in several
        batches. Up to `max_workers` batches are sent at once.

        Parameter `continue_on_build_error` selects what `add_request()` does
        with a subrequest that could not be built: by default it raises a
        `BuildError`; if true, the error becomes that subrequest's result.

        """
        if max_batch_size < 1:
            raise ValueError('max_batch_size must be at least 1')
        if max_workers < 1:
            raise ValueError('max_workers must be at least 1')
        self.endpoint = endpoint
        self.http = http
        self.credentials = credentials
        self.max_batch_size = max_batch_size
        self.max_workers = max_workers
        self.continue_on_build_error = continue_on_build_error
        self.batch_id = batch_id or str(uuid.uuid4())

        self.requests = list()
        self.results = None
        self.started = False
        self._local = threading.local()
        self._deadline = None

    def __len__(self):
        """Returns the number of subrequests in the batch, including those
        that could not be built."""
        return len(self.requests)

    @property
    def batch_url(self):
        parts = urlparse(self.endpoint)
        if parts.path in ('', '/'):
            return urljoin(self.endpoint, BATCH_PATH)
        return self.endpoint

    def add_request(self, reqinfo, error=None, result=None, tag=None, credentials=None):
        """Adds a new subrequest to this `BatchRequest` instance.

        Parameter `reqinfo` is the HTTP request to perform, specified as a
        mapping of keyword arguments suitable for passing to an
        `httplib2.Http.request()` call. Parameter `error` is the exception
        raised while building the request, if any. Parameters `result`,
        `tag` and `credentials` are as for `Request`.

        If `error` is given, either a `BuildError` is raised and nothing is
        added, or the subrequest is added already failed, as selected by
        `continue_on_build_error`.

        If the batch request was already performed, a `BatchError` is
        raised.

        """
        if self.started:
            raise BatchError('Batch request has already been performed')
        sequence = len(self.requests) + 1

        if error is not None:
            build_error = error if isinstance(error, BuildError) else BuildError(error, tag)
            if not self.continue_on_build_error:
                raise build_error
            log.debug('Adding subrequest %d that could not be built: %s', sequence, error)
            self.requests.append(Request(sequence, None, tag=tag, error=build_error))
            return

        if not reqinfo or 'uri' not in reqinfo:
            raise BatchError('Subrequest has no uri')
        if result is not None and not callable(result):
            raise TypeError('Subrequest result must be callable, not %r' % (result,))
        self.requests.append(Request(sequence, dict(reqinfo), result=result, tag=tag,
            credentials=credentials))

    def exchanges(self, requests):
        """Splits the given subrequests into the batches to send.

        Returns a list of ``(credentials, requests)`` tuples, one per batch:
        one per credential group, or more if a group is bigger than
        `max_batch_size`.

        """
        exchanges = []
        for credentials, group in partition(requests, self.credentials):
            for start in range(0, len(group), self.max_batch_size):
                exchanges.append((credentials, group[start:start + self.max_batch_size]))
        return exchanges

    def do(self, cancel=None, timeout=None):
        """Performs the batch request and returns its results.

        Returns a list of `Result` instances, one for each subrequest, in the
        order the subrequests were added. Check the `error` of each; a
        returned list doesn't mean every subrequest succeeded.

        Parameter `cancel` is an optional `threading.Event`; once it's set,
        the batch request stops waiting and every subrequest not yet complete
        gets a `BatchCancelledError`. Parameter `timeout` is the number of
        seconds to wait before doing the same with a `BatchTimeoutError`.
        Exchanges in flight then are not interrupted. The default transport's
        sockets time out at the deadline; a transport given to the constructor
        must set its own socket timeout, or its worker threads may outlive
        the batch.

        If the batch has no subrequests, has no endpoint, or was already
        performed, a `BatchError` is raised. If every exchange failed at the
        transport level, that `TransportError` is raised instead of returning
        the results. Any other exception from the transport propagates out
        of `do()`, and the results of the other exchanges are lost.

        """
        if self.started:
            raise BatchError('Batch request has already been performed')
        if not self.requests:
            log.warning('No requests were made for the batch')
            raise BatchError('There are no requests in the batch')
        if self.endpoint is None:
            raise BatchError("There's no batch processor endpoint to which to send a batch request")
        self.started = True

        if cancel is None:
            cancel = threading.Event()
        deadline = None
        if timeout is not None:
            deadline = time.monotonic() + timeout
        self._deadline = deadline

        results = [None] * len(self.requests)
        pending = []
        for request in self.requests:
            if request.error is not None:
                results[request.sequence - 1] = Result(request.tag, error=request.error)
            else:
                pending.append(request)

        exchanges = self.exchanges(pending)
        log.info('Making batch request for %d items in %d exchanges',
            len(pending), len(exchanges))
        if exchanges:
            self._perform(exchanges, results, cancel, deadline)

        self.results = results
        self._check_transport(pending, results)
        return results

    def _perform(self, exchanges, results, cancel, deadline):
        abort = threading.Event()

        def stopped():
            return cancel.is_set() or abort.is_set()

        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(exchanges)),
            thread_name_prefix='mimebatch')
        futures = {}
        for credentials, requests in exchanges:
            future = executor.submit(self._exchange, credentials, requests, stopped)
            futures[future] = requests

        not_done = set(futures)
        timed_out = False
        try:
            while not_done:
                if cancel.is_set():
                    break
                wait_for = POLL_INTERVAL
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        timed_out = True
                        break
                    wait_for = min(wait_for, remaining)
                done, not_done = wait(not_done, timeout=wait_for)
                for future in done:
                    for sequence, result in future.result().items():
                        results[sequence - 1] = result
        finally:
            abort.set()
            for future in not_done:
                future.cancel()
            # Exchanges still in flight are abandoned, not waited for.
            executor.shutdown(wait=not not_done)

        if not_done:
            if timed_out:
                error = BatchTimeoutError('Batch request timed out')
            else:
                error = BatchCancelledError('Batch request was cancelled')
            count = 0
            for future in not_done:
                for request in futures[future]:
                    results[request.sequence - 1] = Result(request.tag, error=error)
                    count += 1
            log.warning('%s with %d subrequests incomplete', error, count)

    def _check_transport(self, pending, results):
        if not pending:
            return
        errors = [results[request.sequence - 1].error for request in pending]
        if all(isinstance(error, TransportError) for error in errors):
            error = errors[0]
            error.results = results
            raise error

    def _get_http(self):
        if self.http is not None:
            return self.http
        http = getattr(self._local, 'http', None)
        if http is None:
            http = self._local.http = Http()
        # Sockets must give up by the deadline, or a stalled exchange would
        # keep its worker thread alive after do() has returned.
        if self._deadline is not None:
            http.timeout = max(self._deadline - time.monotonic(), POLL_INTERVAL)
        return http

    def _fail(self, requests, error):
        return dict((request.sequence, Result(request.tag, error=error))
            for request in requests)

    def _exchange(self, credentials, requests, stopped):
        """Sends one batch of subrequests that share `credentials`.

        Returns a mapping of subrequest sequence numbers to their `Result`
        instances.

        """
        if stopped():
            return self._fail(requests, BatchCancelledError('Batch request was cancelled'))

        try:
            headers, body = self.construct(requests, credentials)
        except CredentialsError as exc:
            log.warning('%s', exc)
            return self._fail(requests, exc)

        try:
            response, content = self._get_http().request(self.batch_url, method='POST',
                body=body, headers=headers)
        except TRANSPORT_ERRORS as exc:
            log.warning('Batch request for %d items failed: %s', len(requests), exc)
            error = TransportError('Batch request failed: %s' % (exc,))
            error.__cause__ = exc
            return self._fail(requests, error)

        return self.handle_response(requests, response, content)

    def construct(self, requests, credentials=None):
        """Builds a batch HTTP request from the given subrequests.

        The batch request is returned as a tuple containing a mapping of HTTP
        headers and the bytes of the request body. If `credentials` are
        given, they supply the ``Authorization`` header; if they fail to, a
        `CredentialsError` is raised.

        """
        msg = MultipartHTTPMessage()
        for request in requests:
            msg.attach(request.as_message(self.batch_id))

        # Do this ahead of getting headers, since the boundary is not
        # assigned until we bake the multipart message:
        content = msg.as_string(write_headers=False)
        headers = {}
        for header, value in msg.items():
            headers[header] = value

        # lets prefer gzip encoding on the batch response
        headers['accept-encoding'] = 'gzip;q=1.0, identity; q=0.5, *;q=0'

        if credentials is not None:
            try:
                headers['authorization'] = credentials.token()
            except Exception as exc:
                error = CredentialsError('Could not authorize batch request: %s' % (exc,))
                error.__cause__ = exc
                raise error

        return headers, content.encode('utf-8', 'surrogateescape')

    def handle_response(self, requests, response, content):
        """Decodes the subresponses contained in the given batch HTTP
        response.

        Parameters `response` and `content` are the `httplib2.Response`
        instance representing the batch HTTP response information and its
        associated content respectively.

        Returns a mapping of the sequence numbers of `requests` to their
        `Result` instances. If the response is not a successful HTTP
        response, every subrequest fails with a `NonBatchResponseError`; if
        it can't be split into subresponses, every subrequest fails with a
        `FramingError`.

        """
        # was the response okay?
        if not 200 <= response.status < 300:
            log.debug('Received non-batch response %d %s with content:\n%s',
                response.status, response.reason, content)
            return self._fail(requests, NonBatchResponseError(response.status, response.reason, content))

        try:
            parser = HTTPParser(content, content_type=response.get('content-type'))
        except ParserError as exc:
            log.debug('RESPONSE: %s', response)
            log.debug('CONTENT: %s', content)
            return self._fail(requests, FramingError('Response was not a MIME multipart response set: %s' % exc))

        by_sequence = dict((request.sequence, request) for request in requests)
        results = {}
        for part in parser.parts:
            try:
                batch_id, sequence = parse_content_id(part.content_id)
            except ParserError as exc:
                log.warning('Batch response included an unusable part: %s', exc)
                continue
            request = by_sequence.get(sequence)
            if batch_id != self.batch_id or request is None:
                log.warning('Batch response included a part for no subrequest: %s', part.content_id)
                continue
            if sequence in results:
                log.warning('Batch response included subresponse %d more than once', sequence)
                continue
            results[sequence] = request.decode_response(part)

        for request in requests:
            if request.sequence not in results:
                results[request.sequence] = Result(request.tag, error=FramingError(
                    'Batch response included no subresponse for subrequest %d' % request.sequence))
        return results


class BatchClient(object):

    """Sort of an HTTP client for performing a batch HTTP request.

    A `BatchClient` holds the configuration of the batch requests it opens
    and keeps one open batch request at a time.

    """

    def __init__(self, endpoint=None, http=None, credentials=None,
                 max_batch_size=DEFAULT_MAX_BATCH_SIZE,
                 max_workers=DEFAULT_MAX_WORKERS,
                 continue_on_build_error=False):
        """Configures the `BatchClient` instance.

        Parameter `endpoint` is the URL of the batch processor to which to
        submit batch requests. The other parameters are as for
        `BatchRequest`.

        """
        self.endpoint = endpoint
        self.http = http
        self.credentials = credentials
        self.max_batch_size = max_batch_size
        self.max_workers = max_workers
        self.continue_on_build_error = continue_on_build_error

    def new_batch(self):
        """Returns a new `BatchRequest` configured like this client, without
        opening it."""
        return BatchRequest(self.endpoint, http=self.http,
            credentials=self.credentials, max_batch_size=self.max_batch_size,
            max_workers=self.max_workers,
            continue_on_build_error=self.continue_on_build_error)

    def batch_request(self):
        """Opens a batch request.

        If a batch request is already open, a `BatchError` is raised.

        You can use this method with the ``with`` statement::

        >>> with client.batch_request() as batch:
        ...     client.batch({'uri': uri}, result=Event, tag=event_id)
        >>> results = batch.results

        The batch request is then completed automatically at the end of the
        ``with`` block.

        """
        import traceback
        if hasattr(self, 'batchrequest'):
            # hey, we already have a request. this is invalid...
            log.debug('Batch request previously opened at:\n'
                + ''.join(traceback.format_list(self._opened)))
            log.debug('New now at:\n' + ''.join(traceback.format_stack()))
            raise BatchError("There's already an open batch request")
        self.batchrequest = self.new_batch()
        self._opened = traceback.extract_stack()

        # Return ourself so we can enter a "with" context.
        return self

    def complete_batch(self, cancel=None, timeout=None):
        """Closes a batch request, submitting it and returning the results.

        If no batch request is open, a `BatchError` is raised. Parameters
        `cancel` and `timeout` are as for `BatchRequest.do()`.

        """
        if not hasattr(self, 'batchrequest'):
            raise BatchError("There's no open batch request to complete")
        try:
            return self.batchrequest.do(cancel=cancel, timeout=timeout)
        finally:
            del self.batchrequest

    def clear_batch(self):
        """Closes a batch request without performing it."""
        try:
            del self.batchrequest
        except AttributeError:
            # well it's already cleared then isn't it
            pass

    def batch(self, reqinfo, error=None, result=None, tag=None, credentials=None):
        """Adds the given subrequest to the open batch request.

        The parameters are as for `BatchRequest.add_request()`.

        If no batch request is open, a `BatchError` is raised.

        """
        if not hasattr(self, 'batchrequest'):
            raise BatchError("There's no open batch request to add an object to")
        self.batchrequest.add_request(reqinfo, error=error, result=result, tag=tag,
            credentials=credentials)

    def __enter__(self):
        return self.batchrequest

    def __exit__(self, *exc_info):
        if exc_info[0] is not None:
            # Exception! Let's forget the whole thing.
            self.clear_batch()
        else:
            # Finished the context. Try to complete the request.
            self.complete_batch()
