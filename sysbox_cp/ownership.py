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
Recursive ownership correction of a copied tree.

Files copied through a host directory that isn't subject to any kernel ID
translation keep the numeric owners they had on the other side of the user
namespace. For example, with a container whose root is mapped to host user
100000, a file owned by 1000 on the host and copied into the container's
cloned rootfs must end up owned by 101000 for the container to see it as
owned by 1000.

Two corrections share the same walk:

* reown() adds a constant uid/gid delta to every entry.
* assign() gives every entry the same fixed owner.

Entries are changed with lchown, so symlinks are re-owned themselves and
never followed.
"""

import os
import stat

from oslo_log import log as logging

from sysbox_cp import exception

LOG = logging.getLogger(__name__)


def print_chown(path, uid, gid, target_uid, target_gid):
    LOG.debug('%s %s:%s -> %s:%s', path, uid, gid, target_uid, target_gid)


def chown_path(path, owner_fn):
    """Re-own a single entry.

    :param owner_fn: callable mapping the current (uid, gid) to the new one
    :returns: the lstat result of ``path`` before the change, or None if the
              entry vanished.
    :raises: CorrectionFailed on any other error.
    """
    try:
        st = os.lstat(path)
        target_uid, target_gid = owner_fn(st.st_uid, st.st_gid)
        print_chown(path, st.st_uid, st.st_gid, target_uid, target_gid)
        os.lchown(path, target_uid, target_gid)
    except FileNotFoundError:
        LOG.debug('%s vanished during ownership correction, skipping', path)
        return None
    except OSError as e:
        raise exception.CorrectionFailed(path=path, reason=e.strerror or e)
    return st


def _list_dir(path):
    try:
        with os.scandir(path) as it:
            return [entry.path for entry in it]
    except FileNotFoundError:
        LOG.debug('%s vanished during ownership correction, skipping', path)
        return []
    except OSError as e:
        raise exception.CorrectionFailed(path=path, reason=e.strerror or e)


def walk(root, owner_fn):
    """Apply ``owner_fn`` to ``root`` and everything below it.

    An explicit stack is used so arbitrarily deep trees don't hit the
    recursion limit. Symlinks are never descended.

    :returns: number of entries re-owned
    """
    count = 0
    stack = [root]
    while stack:
        path = stack.pop()
        st = chown_path(path, owner_fn)
        if st is None:
            continue
        count += 1
        if stat.S_ISDIR(st.st_mode):
            stack.extend(_list_dir(path))
    return count


def reown(root, uid_delta, gid_delta):
    """Shift the owner of every entry under ``root`` by a constant delta.

    The delta is added to whatever owner each entry currently has, so this
    is not idempotent: running it twice shifts twice.
    """
    def shift(uid, gid):
        return uid + uid_delta, gid + gid_delta

    count = walk(root, shift)
    LOG.debug('Shifted ownership of %(count)d entries under %(root)s by '
              '%(uid)+d:%(gid)+d',
              {'count': count, 'root': root,
               'uid': uid_delta, 'gid': gid_delta})
    return count


def assign(root, uid, gid):
    """Make ``uid``:``gid`` the owner of every entry under ``root``."""
    def fixed(_uid, _gid):
        return uid, gid

    count = walk(root, fixed)
    LOG.debug('Assigned %(uid)s:%(gid)s to %(count)d entries under %(root)s',
              {'count': count, 'root': root, 'uid': uid, 'gid': gid})
    return count
