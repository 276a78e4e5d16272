#    Licensed under the Apache License, Version 2.0 (the "License"); you may
#    not use this file except in compliance with the License. You may obtain
#    a copy of the License at
#
#         http://www.apache.org/licenses/LICENSE-2.0
#
#    Unless required by applicable law or agreed to in writing, software
#    distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
#    WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
#    License for the specific language governing permissions and limitations
#    under the License.

"""Base classes for our unit tests.

Allows overriding of config options and sets up the fixtures every test
needs: log capture, output capture and a private fake host tree.
"""

import fixtures
from oslo_log.fixture import logging_error as log_fixture
import testtools

import sysbox_cp.conf
from sysbox_cp.tests import fixtures as sysbox_fixtures

CONF = sysbox_cp.conf.CONF


class TestCase(testtools.TestCase):
    """Test case base class for all unit tests."""

    def setUp(self):
        """Run before each test method to initialize test environment."""
        super(TestCase, self).setUp()
        self.useFixture(fixtures.NestedTempfile())
        self.useFixture(log_fixture.get_logging_handle_error_fixture())

        self.output = sysbox_fixtures.OutputStreamCapture()
        self.useFixture(self.output)

        self.stdlog = sysbox_fixtures.StandardLogging()
        self.useFixture(self.stdlog)

        self.conf_fixture = self.useFixture(
            sysbox_fixtures.ConfFixture(CONF))

    def flags(self, **kw):
        """Override flag variables for a test."""
        self.useFixture(sysbox_fixtures.ConfPatcher(CONF, **kw))
