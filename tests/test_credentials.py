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

import unittest

from mimebatch.client import Request
from mimebatch.credentials import BearerToken, Credentials, TokenSource, partition


def request(sequence, credentials=None):
    return Request(sequence, {'uri': 'http://example.com/%d' % sequence},
        credentials=credentials)


class TestCredentials(unittest.TestCase):

    def test_bearer(self):
        self.assertEqual(BearerToken('abc').token(), 'Bearer abc')
        self.assertEqual(BearerToken('abc', token_type='MAC').token(), 'MAC abc')

    def test_token_source(self):
        tokens = iter(['one', 'two'])
        credentials = TokenSource(lambda: next(tokens))
        self.assertEqual(credentials.token(), 'Bearer one')
        self.assertEqual(credentials.token(), 'Bearer two')
        self.assertRaises(ValueError, TokenSource(lambda: '').token)

    def test_abstract(self):
        self.assertRaises(NotImplementedError, Credentials().token)


class TestPartition(unittest.TestCase):

    def test_no_credentials(self):
        requests = [request(1), request(2)]
        self.assertEqual(partition(requests), [(None, requests)])

    def test_default_and_overrides(self):
        default = BearerToken('default')
        alice = BearerToken('alice')
        bob = BearerToken('bob')
        requests = [request(1, bob), request(2), request(3, alice), request(4, bob), request(5)]

        groups = partition(requests, default)
        self.assertEqual([credentials for credentials, group in groups], [bob, default, alice])
        self.assertEqual([[r.sequence for r in group] for credentials, group in groups],
            [[1, 4], [2, 5], [3]])

    def test_identity_not_equality(self):
        # Equal tokens in distinct credentials still go in distinct batches.
        first, second = BearerToken('same'), BearerToken('same')
        groups = partition([request(1, first), request(2, second)])
        self.assertEqual(len(groups), 2)


if __name__ == '__main__':
    unittest.main()
