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

"""Fixtures for sysbox_cp tests."""

import logging as std_logging
import os

import fixtures

_TRUE_VALUES = ('True', 'true', '1', 'yes')


class NullHandler(std_logging.Handler):
    """custom default NullHandler to attempt to format the record.

    Used in conjunction with
    log_fixture.get_logging_handle_error_fixture to detect formatting errors in
    debug level logs without saving the logs.
    """
    def handle(self, record):
        self.format(record)

    def emit(self, record):
        pass

    def createLock(self):
        self.lock = None


class StandardLogging(fixtures.Fixture):
    """Setup Logging redirection for tests.

    Logs are collected by a fake logger at the root level, INFO by default
    or DEBUG when OS_DEBUG=True is set in the environment. DEBUG messages
    are always formatted, so broken format strings fail the test, even when
    they are not kept.
    """

    def setUp(self):
        super(StandardLogging, self).setUp()

        # set root logger to debug
        root = std_logging.getLogger()
        root.setLevel(std_logging.DEBUG)

        # supports collecting debug level for local runs
        if os.environ.get('OS_DEBUG') in _TRUE_VALUES:
            level = std_logging.DEBUG
        else:
            level = std_logging.INFO

        # Collect logs
        fs = '%(asctime)s %(levelname)s [%(name)s] %(message)s'
        self.logger = self.useFixture(
            fixtures.FakeLogger(format=fs, level=None))
        root.handlers[0].setLevel(level)

        if level > std_logging.DEBUG:
            # Just attempt to format debug level logs, but don't save them
            handler = NullHandler()
            self.useFixture(fixtures.LogHandler(handler, nuke_handlers=False))
            handler.setLevel(std_logging.DEBUG)

        # The command line entry point calls logging.setup, which would
        # unwind the capture set up here.
        def fake_logging_setup(*args):
            pass

        self.useFixture(
            fixtures.MonkeyPatch('oslo_log.log.setup', fake_logging_setup))


class OutputStreamCapture(fixtures.Fixture):
    """Capture output streams during tests.

    This fixture captures errant printing to stderr / stdout during
    the tests and lets us see those streams at the end of the test
    runs instead.
    """

    def setUp(self):
        super(OutputStreamCapture, self).setUp()
        self.out = self.useFixture(fixtures.StringStream('stdout'))
        self.useFixture(
            fixtures.MonkeyPatch('sys.stdout', self.out.stream))
        self.err = self.useFixture(fixtures.StringStream('stderr'))
        self.useFixture(
            fixtures.MonkeyPatch('sys.stderr', self.err.stream))

    @property
    def stderr(self):
        return self.err._details["stderr"].as_text()

    @property
    def stdout(self):
        return self.out._details["stdout"].as_text()


class ConfPatcher(fixtures.Fixture):
    """Fixture to patch and restore global CONF.

    This also resets overrides for everything that is patched during
    its teardown.

    """

    def __init__(self, conf, **kwargs):
        """Constructor

        :params group: if specified all config options apply to that group.

        :params **kwargs: the rest of the kwargs are processed as a
        set of key/value pairs to be set as configuration override.

        """
        super(ConfPatcher, self).__init__()
        self.conf = conf
        self.group = kwargs.pop('group', None)
        self.args = kwargs

    def setUp(self):
        super(ConfPatcher, self).setUp()
        for k, v in self.args.items():
            self.addCleanup(self.conf.clear_override, k, self.group)
            self.conf.set_override(k, v, self.group)


class ConfFixture(fixtures.Fixture):
    """Point every host path option at a private temporary tree.

    Tests never look at the real /proc or Sysbox data root. The fake proc
    tree and data root are available as ``proc_path`` and ``data_root``.
    """

    def __init__(self, conf):
        super(ConfFixture, self).__init__()
        self.conf = conf

    def setUp(self):
        super(ConfFixture, self).setUp()
        base = self.useFixture(fixtures.TempDir()).path
        self.proc_path = os.path.join(base, 'proc')
        self.data_root = os.path.join(base, 'var', 'lib', 'sysbox')
        os.makedirs(self.proc_path)
        os.makedirs(self.data_root)

        self.conf.set_default('proc_path', self.proc_path, group='sysbox')
        self.conf.set_default('data_root', self.data_root, group='sysbox')
        self.addCleanup(self.conf.reset)

    def add_process(self, pid, uid_map='0 100000 65536\n',
                    gid_map='0 100000 65536\n'):
        """Create the uid_map and gid_map files of a fake process."""
        proc_dir = os.path.join(self.proc_path, str(pid))
        os.makedirs(proc_dir, exist_ok=True)
        with open(os.path.join(proc_dir, 'uid_map'), 'w') as f:
            f.write(uid_map)
        with open(os.path.join(proc_dir, 'gid_map'), 'w') as f:
            f.write(gid_map)

    def set_modules(self, *modules):
        """Write a fake /proc/modules listing ``modules``."""
        with open(os.path.join(self.proc_path, 'modules'), 'w') as f:
            for name in modules:
                f.write('%s 12288 0 - Live 0x0000000000000000\n' % name)


class OwnershipFixture(fixtures.Fixture):
    """Fake file ownership so that chown walks can run unprivileged.

    os.lchown records the new owner instead of changing anything and
    os.lstat reports the recorded owner, or ``default_owner`` for entries
    never chowned. Everything else lstat returns comes from the real file,
    so entries that don't exist still raise FileNotFoundError.
    """

    def __init__(self, default_owner=(0, 0)):
        super(OwnershipFixture, self).__init__()
        self.default_owner = default_owner

    def _setUp(self):
        self.owners = {}
        self.chowned = []
        self._real_lstat = os.lstat
        self.useFixture(fixtures.MonkeyPatch('os.lstat', self._lstat))
        self.useFixture(fixtures.MonkeyPatch('os.lchown', self._lchown))

    def set_owner(self, path, uid, gid):
        self.owners[os.path.normpath(path)] = (uid, gid)

    def owner(self, path):
        return self.owners.get(os.path.normpath(os.fspath(path)),
                               self.default_owner)

    def _lstat(self, path, *args, **kwargs):
        st = self._real_lstat(path, *args, **kwargs)
        values = list(st[:10])
        values[4], values[5] = self.owner(path)
        return os.stat_result(values)

    def _lchown(self, path, uid, gid):
        self._real_lstat(path)
        self.chowned.append(os.path.normpath(path))
        self.set_owner(path, uid, gid)
