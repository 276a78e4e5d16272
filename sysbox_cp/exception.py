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

"""sysbox_cp base exception handling.

Every error raised by the copy tool derives from SysboxCpException so the
command line entry point can report it and pick the exit status.
"""

from oslo_log import log as logging

from sysbox_cp.i18n import _

LOG = logging.getLogger(__name__)


class SysboxCpException(Exception):
    """Base sysbox_cp Exception

    To correctly use this class, inherit from it and define
    a 'msg_fmt' property. That msg_fmt will get printf'd
    with the keyword arguments provided to the constructor.

    """
    msg_fmt = _("An unknown exception occurred.")
    code = 1

    def __init__(self, message=None, **kwargs):
        self.kwargs = kwargs

        if 'code' not in self.kwargs:
            try:
                self.kwargs['code'] = self.code
            except AttributeError:
                pass

        try:
            if not message:
                message = self.msg_fmt % kwargs
            else:
                message = str(message)
        except Exception:
            # NOTE: This is done in a separate method so it can be
            # monkey-patched during testing to make it a hard failure.
            self._log_exception()
            message = self.msg_fmt

        self.message = message
        super(SysboxCpException, self).__init__(message)

    def _log_exception(self):
        # kwargs doesn't match a variable in the message
        # log the issue and the kwargs
        LOG.exception('Exception in string format operation')
        for name, value in self.kwargs.items():
            LOG.error("%s: %s", name, value)

    def format_message(self):
        # NOTE: use the first argument to the python Exception object
        # which should be our full SysboxCpException message, (see __init__)
        return self.args[0]

    def __repr__(self):
        dict_repr = self.__dict__
        dict_repr['class'] = self.__class__.__name__
        return str(dict_repr)


class InvalidUsage(SysboxCpException):
    msg_fmt = _("Invalid usage: %(reason)s")
    code = 2


class PreconditionFailed(SysboxCpException):
    msg_fmt = _("Precondition failed: %(reason)s")


class ContainerNotFound(PreconditionFailed):
    msg_fmt = _("Container %(name)s could not be found.")


class RuntimeMismatch(PreconditionFailed):
    msg_fmt = _("Container %(name)s is not a Sysbox container: it runs "
                "with runtime '%(runtime)s' instead of '%(expected)s'.")


class InsufficientPrivilege(PreconditionFailed):
    msg_fmt = _("Insufficient privileges to access the container's root "
                "filesystem at %(path)s; run this command as root "
                "(e.g. with sudo).")


class InvalidIdMap(PreconditionFailed):
    msg_fmt = _("Unable to read the id mapping of process %(pid)s from "
                "%(path)s: %(reason)s")


class CommandFailed(SysboxCpException):
    msg_fmt = _("Command '%(cmd)s' failed with exit code %(exit_code)s: "
                "%(stderr)s")


class CopyFailed(SysboxCpException):
    """Raised when the raw docker cp invocation fails.

    The exit code of docker is kept so the caller can return it unchanged.
    """
    msg_fmt = _("Copy failed with exit code %(exit_code)s: %(reason)s")

    def __init__(self, message=None, **kwargs):
        super(CopyFailed, self).__init__(message, **kwargs)
        self.exit_code = kwargs.get('exit_code') or self.code


class CorrectionFailed(SysboxCpException):
    msg_fmt = _("Failed to correct ownership of %(path)s: %(reason)s")
