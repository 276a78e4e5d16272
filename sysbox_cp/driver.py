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

"""Drive one ``docker cp`` invocation against a Sysbox container.

The copy itself is left to docker. What this module adds is everything
around it: making sure the target is a Sysbox container, working out where
the copied files land on the host and, when the container's root filesystem
is not subject to kernel ID translation, fixing up their owners afterwards.
"""

from dataclasses import dataclass
import enum
import os
import posixpath
from typing import Tuple

from oslo_log import log as logging

import sysbox_cp.conf
from sysbox_cp import docker
from sysbox_cp import exception
from sysbox_cp.i18n import _
from sysbox_cp import idmap
from sysbox_cp import ownership
from sysbox_cp import rootfs

CONF = sysbox_cp.conf.CONF
LOG = logging.getLogger(__name__)

# Trailing "/." means "the directory itself" for DEST and "the contents of
# the directory" for SRC, as in docker cp.
CURRENT_DIR_SUFFIX = os.sep + '.'


class Direction(enum.Enum):

    TO_CONTAINER = 'to-container'
    FROM_CONTAINER = 'from-container'


def split_container_path(arg):
    """Split a ``CONTAINER:PATH`` argument.

    Follows docker's rule: absolute paths are always local, and a colon only
    names a container when nothing before it looks like a path.

    :returns: (container, path) or (None, arg) for a local path
    """
    if arg.startswith(os.sep) or ':' not in arg:
        return None, arg
    container, path = arg.split(':', 1)
    if os.sep in container:
        return None, arg
    return container, path


@dataclass(frozen=True)
class CopyOperation():
    direction: Direction
    container: str
    container_path: str
    host_path: str
    src: str
    dest: str
    archive: bool = False
    follow_link: bool = False

    @classmethod
    def from_args(cls, src, dest, archive=False, follow_link=False):
        """Build a CopyOperation out of the two docker cp positionals.

        :raises: InvalidUsage unless exactly one of them names a container
        """
        if src == '-' or dest == '-':
            raise exception.InvalidUsage(
                reason=_("streaming a tar archive through '-' is not "
                         "supported"))

        src_container, src_path = split_container_path(src)
        dest_container, dest_path = split_container_path(dest)

        if src_container is not None and dest_container is not None:
            raise exception.InvalidUsage(
                reason=_("copying between containers is not supported"))
        if src_container is None and dest_container is None:
            raise exception.InvalidUsage(
                reason=_("must specify at least one container source"))

        if dest_container is not None:
            direction = Direction.TO_CONTAINER
            container, container_path, host_path = (
                dest_container, dest_path, src_path)
        else:
            direction = Direction.FROM_CONTAINER
            container, container_path, host_path = (
                src_container, src_path, dest_path)

        if not container:
            raise exception.InvalidUsage(reason=_("empty container name"))
        if not container_path or not host_path:
            raise exception.InvalidUsage(reason=_("empty path"))

        return cls(direction=direction, container=container,
                   container_path=container_path, host_path=host_path,
                   src=src, dest=dest, archive=archive,
                   follow_link=follow_link)


@dataclass(frozen=True)
class OwnershipCorrectionJob():
    """Ownership fix-up applied once after a successful copy.

    When ``relative`` is set, ``uid`` and ``gid`` are deltas added to the
    current owners; otherwise they are the new owner of every entry.
    """
    paths: Tuple[str, ...]
    uid: int
    gid: int
    relative: bool

    @classmethod
    def shift(cls, paths, uid_delta, gid_delta):
        return cls(tuple(paths), uid_delta, gid_delta, True)

    @classmethod
    def assign(cls, paths, uid, gid):
        return cls(tuple(paths), uid, gid, False)

    def run(self):
        for path in self.paths:
            if self.relative:
                ownership.reown(path, self.uid, self.gid)
            else:
                ownership.assign(path, self.uid, self.gid)


def invoking_user():
    """Return the (uid, gid) of the user who ran the command.

    Under sudo that is the user sudo was invoked by, not root.
    """
    uid = os.environ.get('SUDO_UID')
    gid = os.environ.get('SUDO_GID')
    if uid and gid:
        return int(uid), int(gid)
    return os.getuid(), os.getgid()


def _in_rootfs(root, container, path):
    if not posixpath.isabs(path):
        path = posixpath.join(container.workdir, path)
    return os.path.join(root, posixpath.normpath(path).lstrip('/'))


def _basename(path):
    return os.path.basename(path.rstrip(os.sep)) or os.sep


def landing_paths(src, dest, src_listing=None):
    """Return the host paths that a copy from ``src`` to ``dest`` creates.

    ``dest`` must already be translated to the host side. This has to be
    called before the copy, since it looks at whether ``dest`` exists.

    :param src: copy source as given on the command line
    :param dest: host-side path of the copy destination
    :param src_listing: entries of ``src`` when it ends in "/.", used so that
                        only the copied entries of an existing destination
                        directory are returned; if None the destination
                        directory is returned as a whole
    """
    into_dir = dest.endswith(CURRENT_DIR_SUFFIX) or os.path.isdir(dest)
    if dest.endswith(CURRENT_DIR_SUFFIX):
        dest = dest[:-len(CURRENT_DIR_SUFFIX)] or os.sep

    if src.endswith(CURRENT_DIR_SUFFIX):
        if os.path.isdir(dest) and src_listing is not None:
            return [os.path.join(dest, name) for name in sorted(src_listing)]
        return [dest]

    if into_dir:
        return [os.path.join(dest, _basename(src))]
    return [dest]


def check_rootfs_access(root):
    if not root or not os.access(root, os.R_OK | os.X_OK):
        raise exception.InsufficientPrivilege(path=root)


def _lookup_root(container, container_rootfs):
    """Return the directory where the container's files can be looked up.

    An ID-mapped rootfs is corrected through the overlay upper dir, but
    that only holds what the container changed. Anything that comes from
    the image is only visible in the merged view.
    """
    if (container_rootfs.strategy is rootfs.RootfsStrategy.IDMAPPED and
            container.merged_dir):
        return container.merged_dir
    return container_rootfs.root


def _rebase(path, old_root, new_root):
    return os.path.normpath(
        os.path.join(new_root, os.path.relpath(path, old_root)))


def _list_source(path):
    try:
        return os.listdir(path)
    except FileNotFoundError:
        # docker cp reports the missing source itself
        LOG.debug('Copy source %s not found', path)
        return None
    except OSError:
        raise exception.InsufficientPrivilege(path=path)


def plan_correction(operation, container, container_rootfs):
    """Build the OwnershipCorrectionJob for ``operation``.

    Must be called before the copy; see landing_paths().
    """
    lookup_root = _lookup_root(container, container_rootfs)

    if operation.direction is Direction.TO_CONTAINER:
        mapping = idmap.get_id_mapping(container.pid)
        dest = _in_rootfs(lookup_root, container, operation.container_path)
        if operation.container_path.endswith(CURRENT_DIR_SUFFIX):
            dest += CURRENT_DIR_SUFFIX
        src_listing = None
        if operation.host_path.endswith(CURRENT_DIR_SUFFIX):
            src_listing = _list_source(operation.host_path)
        paths = [_rebase(path, lookup_root, container_rootfs.root)
                 for path in landing_paths(operation.host_path, dest,
                                           src_listing)]
        return OwnershipCorrectionJob.shift(paths, mapping.uid_delta,
                                            mapping.gid_delta)

    src_listing = None
    if operation.container_path.endswith(CURRENT_DIR_SUFFIX):
        check_rootfs_access(lookup_root)
        src_listing = _list_source(
            _in_rootfs(lookup_root, container, operation.container_path))
    uid, gid = invoking_user()
    paths = landing_paths(operation.container_path, operation.host_path,
                          src_listing)
    return OwnershipCorrectionJob.assign(paths, uid, gid)


def run(operation):
    """Copy files as described by ``operation`` and fix their ownership.

    :returns: 0 on success
    :raises: ContainerNotFound, RuntimeMismatch, InsufficientPrivilege or
             InvalidIdMap before anything is copied; CopyFailed if docker cp
             fails; CorrectionFailed if the ownership fix-up fails.
    """
    container = docker.inspect_container(operation.container)
    if container.runtime != CONF.sysbox.runtime:
        raise exception.RuntimeMismatch(name=operation.container,
                                        runtime=container.runtime,
                                        expected=CONF.sysbox.runtime)

    container_rootfs = rootfs.classify(container)
    if operation.direction is Direction.TO_CONTAINER:
        check_rootfs_access(container_rootfs.root)

    job = None
    if container_rootfs.needs_correction:
        job = plan_correction(operation, container, container_rootfs)

    docker.copy(operation.src, operation.dest,
                archive=operation.archive,
                follow_link=operation.follow_link)

    if job is not None:
        LOG.debug('Correcting ownership of %s', ', '.join(job.paths))
        job.run()
    return 0
