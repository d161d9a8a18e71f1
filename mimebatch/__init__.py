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

mimebatch sends many HTTP API requests as one batch request through MIME
multipart encoding, and hands back each request's result.

This package's `BatchRequest` applies standard MIME multipart encoding to HTTP
messages in the ``multipart/mixed`` form batch endpoints such as Google's APIs
accept: each subrequest travels as an ``application/http`` part, and each
subresponse is matched back to its subrequest by ``Content-ID``.

To make a batch request, open a new request on a `BatchClient` instance (or
make a `BatchRequest` directly) and add your subrequests, along with the
callables that will decode their results. Once all subrequests are added,
complete the request; subrequests are grouped by their credentials, sent, and
a `Result` for each subrequest is returned in the order they were added.

"""

from mimebatch.client import (BatchClient, BatchRequest, Request, Result,
    BatchError, BuildError, TransportError, NonBatchResponseError,
    CredentialsError, FramingError, ApplicationError, DecodeError,
    BatchCancelledError, BatchTimeoutError)
from mimebatch.credentials import Credentials, BearerToken, TokenSource

__version__ = '2.0'
__date__ = '19 October 2026'
__author__ = 'Six Apart Ltd.'
__credits__ = """Brad Choate
Mike Malone
Mark Paschal"""
