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
import unittest
from unittest import mock

import httplib2

from mimebatch.client import BatchRequest
from mimebatch.transport import Http


class TestHttp(unittest.TestCase):

    def test_logs_exchange(self):
        response = httplib2.Response({'status': '200', 'content-type': 'text/plain'})
        http = Http()
        with mock.patch.object(httplib2.Http, 'request',
                               return_value=(response, b'moose')) as request:
            with self.assertLogs('mimebatch.transport', level=logging.DEBUG) as logs:
                result = http.request('http://example.com/batch', method='POST',
                    body=b'hello', headers={'content-type': 'text/plain'})

        self.assertEqual(result, (response, b'moose'))
        request.assert_called_once_with('http://example.com/batch', 'POST', b'hello',
            {'content-type': 'text/plain'})
        self.assertEqual([r.name for r in logs.records],
            ['mimebatch.transport.request', 'mimebatch.transport.response'])
        self.assertTrue(logs.records[0].getMessage().startswith('POST http://example.com/batch (5 bytes)'))
        self.assertTrue('content-type: text/plain' in logs.records[0].getMessage())
        self.assertTrue('moose' in logs.records[1].getMessage())
        self.assertTrue(logs.records[1].getMessage().startswith('200 '))

    def test_default_transport_per_thread(self):
        bat = BatchRequest(endpoint='http://example.com/')
        http = bat._get_http()
        self.assertTrue(isinstance(http, Http))
        self.assertTrue(bat._get_http() is http)

        given = mock.Mock()
        bat = BatchRequest(endpoint='http://example.com/', http=given)
        self.assertTrue(bat._get_http() is given)


if __name__ == '__main__':
    unittest.main()
