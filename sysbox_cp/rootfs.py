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

"""Work out how a Sysbox container's root filesystem is exposed on the host.

Depending on the docker daemon configuration, the Sysbox installation and the
host kernel, the files a container sees are reachable from the host through
one of several directories, and their numeric owners may or may not be
translated on the way. The checks below are evaluated in a fixed order and
the first one that matches wins.
"""

from dataclasses import dataclass
import enum
import os
import re

from oslo_log import log as logging
from oslo_utils import versionutils

import sysbox_cp.conf

CONF = sysbox_cp.conf.CONF
LOG = logging.getLogger(__name__)

_KERNEL_RELEASE_RE = re.compile(r'^(\d+)\.(\d+)')


class RootfsStrategy(enum.Enum):

    USERNS_REMAPPED = 'userns-remapped'
    CLONED = 'cloned'
    IDMAPPED = 'idmapped'
    SHIFTFS = 'shiftfs'
    UNMAPPED = 'unmapped'

    @property
    def needs_correction(self):
        """Whether files copied through this rootfs need their owner fixed.

        Cloned and ID-mapped roots are plain host directories with no ID
        translation, so docker cp leaves container-relative owners on them.
        """
        return self in (RootfsStrategy.CLONED, RootfsStrategy.IDMAPPED)


@dataclass(frozen=True)
class Rootfs():
    strategy: RootfsStrategy
    root: str

    @property
    def needs_correction(self):
        return self.strategy.needs_correction


def cloned_rootfs_dir(container_id):
    return os.path.join(CONF.sysbox.data_root, 'rootfs', container_id)


def kernel_version(release=None):
    """Return the (major, minor) version of the running kernel.

    :param release: kernel release string, defaults to ``uname -r``
    """
    if release is None:
        release = os.uname().release
    match = _KERNEL_RELEASE_RE.match(release)
    if not match:
        LOG.debug('Unable to parse kernel release %s', release)
        return (0, 0)
    return (int(match.group(1)), int(match.group(2)))


def kernel_supports_idmapped_mounts(release=None):
    wanted = versionutils.convert_version_to_tuple(
        CONF.sysbox.idmapped_mount_min_kernel)
    # only major.minor is compared, so "5.19.0" means the same as "5.19"
    wanted = (tuple(wanted) + (0, 0))[:2]
    return kernel_version(release) >= wanted


def shiftfs_loaded():
    modules = os.path.join(CONF.sysbox.proc_path, 'modules')
    try:
        with open(modules, 'r') as f:
            for line in f:
                if line.split(' ', 1)[0] == CONF.sysbox.shiftfs_module:
                    return True
    except FileNotFoundError:
        LOG.debug('%s not found, assuming shiftfs is not loaded', modules)
    except OSError as e:
        LOG.warning('Unable to read %(path)s, assuming shiftfs is not '
                    'loaded: %(err)s', {'path': modules, 'err': e})
    return False


def classify(container):
    """Return the Rootfs in effect for ``container``.

    :param container: a sysbox_cp.docker.ContainerDescriptor
    """
    if container.userns_remap:
        rootfs = Rootfs(RootfsStrategy.USERNS_REMAPPED, container.merged_dir)
    elif os.path.isdir(cloned_rootfs_dir(container.id)):
        rootfs = Rootfs(RootfsStrategy.CLONED,
                        os.path.join(cloned_rootfs_dir(container.id),
                                     'overlay2', 'merged'))
    elif kernel_supports_idmapped_mounts():
        rootfs = Rootfs(RootfsStrategy.IDMAPPED, container.upper_dir)
    elif shiftfs_loaded():
        rootfs = Rootfs(RootfsStrategy.SHIFTFS, container.merged_dir)
    else:
        rootfs = Rootfs(RootfsStrategy.UNMAPPED, container.merged_dir)
        LOG.warning('Container %(name)s has no ID-mapped, shiftfs or cloned '
                    'root filesystem; copied files will show up as owned by '
                    'the overflow user and group inside the container.',
                    {'name': container.name})

    LOG.debug('Container %(name)s rootfs strategy %(strategy)s at %(root)s',
              {'name': container.name, 'strategy': rootfs.strategy.value,
               'root': rootfs.root})
    return rootfs
