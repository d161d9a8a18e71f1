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

Credentials for batch requests.

A batch request can carry only one authorization, so subrequests are grouped
by the credentials they are sent with, and each group is sent as its own
batch. Credentials are anything with a ``token()`` method returning the value
for the ``Authorization`` header of the batch request; obtaining and
refreshing that token is the credentials' own business.

"""

import logging


log = logging.getLogger(__name__)


class Credentials(object):

    """Supplies the ``Authorization`` header of a batch request."""

    def token(self):
        """Returns the value of the ``Authorization`` header to send."""
        raise NotImplementedError()


class BearerToken(Credentials):

    """Credentials for an access token that is already in hand."""

    def __init__(self, access_token, token_type='Bearer'):
        self.access_token = access_token
        self.token_type = token_type

    def token(self):
        return '%s %s' % (self.token_type, self.access_token)

    def __repr__(self):
        return '<%s %s ...>' % (type(self).__name__, self.token_type)


class TokenSource(Credentials):

    """Credentials that ask a callable for the current access token.

    Parameter `source` is called with no arguments each time a batch request
    is sent with these credentials, and should return a valid access token,
    refreshing it first if need be.

    """

    def __init__(self, source, token_type='Bearer'):
        self.source = source
        self.token_type = token_type

    def token(self):
        access_token = self.source()
        if not access_token:
            raise ValueError('Token source returned no access token')
        return '%s %s' % (self.token_type, access_token)


def partition(requests, default=None):
    """Groups subrequests by the credentials they will be sent with.

    A subrequest's own credentials win over the `default` credentials. A
    subrequest with neither is grouped under `None`, leaving authorization to
    the transport. Credentials are told apart by identity, not equality.

    Returns a list of ``(credentials, requests)`` tuples. Groups appear in the
    order their first subrequest was added, and the subrequests in each group
    keep the order in which they were added.

    """
    groups = []
    index = {}
    for request in requests:
        credentials = request.credentials
        if credentials is None:
            credentials = default
        key = id(credentials)
        if key not in index:
            index[key] = len(groups)
            groups.append((credentials, []))
        groups[index[key]][1].append(request)

    log.debug('Partitioned %d subrequests into %d credential groups',
        len(requests), len(groups))
    return groups
