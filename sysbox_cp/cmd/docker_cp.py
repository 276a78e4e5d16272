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

"""
  CLI interface for copying files in and out of Sysbox containers.

  Usage::

    sysbox-docker-cp [OPTIONS] CONTAINER:SRC_PATH DEST_PATH
    sysbox-docker-cp [OPTIONS] SRC_PATH CONTAINER:DEST_PATH

  The files are copied with docker cp and, when the container's root
  filesystem isn't subject to kernel ID translation, their ownership is
  corrected afterwards. Copying into a container usually requires root
  privileges.
"""

import sys

from oslo_config import cfg
from oslo_log import log as logging

from sysbox_cp import config
import sysbox_cp.conf
from sysbox_cp import driver
from sysbox_cp import exception
from sysbox_cp.i18n import _

CONF = sysbox_cp.conf.CONF
LOG = logging.getLogger(__name__)


cli_opts = [
    cfg.BoolOpt('archive',
                short='a',
                default=False,
                help=_('Archive mode (copy all uid/gid information).')),
    cfg.BoolOpt('follow-link',
                short='L',
                default=False,
                help=_('Always follow symbol link in SRC_PATH.')),
    cfg.StrOpt('src',
               positional=True,
               required=True,
               metavar='SRC_PATH',
               help=_('Copy source, either a host path or '
                      'CONTAINER:PATH.')),
    cfg.StrOpt('dest',
               positional=True,
               required=True,
               metavar='DEST_PATH',
               help=_('Copy destination, either a host path or '
                      'CONTAINER:PATH.')),
]

CONF.register_cli_opts(cli_opts)


def main():
    """Parse options, copy the files and fix their ownership."""
    config.parse_args(sys.argv)
    logging.setup(CONF, 'sysbox-cp')

    try:
        operation = driver.CopyOperation.from_args(
            CONF.src, CONF.dest,
            archive=CONF.archive, follow_link=CONF.follow_link)
        return driver.run(operation)
    except exception.CopyFailed as ex:
        # nothing was copied, so there is nothing to correct
        print(_("error: %s") % ex.format_message(), file=sys.stderr)
        return ex.exit_code
    except exception.SysboxCpException as ex:
        LOG.debug('sysbox-docker-cp failed', exc_info=True)
        print(_("error: %s") % ex.format_message(), file=sys.stderr)
        return ex.code
