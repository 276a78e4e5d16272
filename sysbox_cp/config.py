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

from oslo_log import log

import sysbox_cp.conf
from sysbox_cp import version

CONF = sysbox_cp.conf.CONF


def set_log_defaults():
    # We use the oslo.log default log levels and add only the extra levels
    # that sysbox_cp needs
    extra_default_log_levels = ['oslo_concurrency.processutils=WARN']

    log.set_defaults(default_log_levels=log.get_default_log_levels() +
                     extra_default_log_levels)


def parse_args(argv, default_config_files=None):
    log.register_options(CONF)
    set_log_defaults()

    CONF(argv[1:],
         project='sysbox-cp',
         version=version.version_string(),
         default_config_files=default_config_files)
