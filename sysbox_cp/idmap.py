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

"""Read the user namespace ID mapping of a container's init process.

Each of ``/proc/<pid>/uid_map`` and ``/proc/<pid>/gid_map`` holds one row per
mapped range::

    <container-id-start> <host-id-start> <count>

A container started by Sysbox gets a single contiguous range, so only the
first row is used and the whole filesystem is shifted by one offset. Extra
rows are not supported and are ignored.
"""

from dataclasses import dataclass
import os

from oslo_log import log as logging

import sysbox_cp.conf
from sysbox_cp import exception

CONF = sysbox_cp.conf.CONF
LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdMapping():
    container_uid: int
    host_uid: int
    uid_count: int
    container_gid: int
    host_gid: int
    gid_count: int

    @property
    def uid_delta(self):
        return self.host_uid - self.container_uid

    @property
    def gid_delta(self):
        return self.host_gid - self.container_gid


def parse_map(content):
    """Return (container_start, host_start, count) of the first map row."""
    rows = [line.split() for line in content.splitlines() if line.strip()]
    if not rows:
        raise ValueError('empty id map')
    if len(rows) > 1:
        LOG.debug('Ignoring %d extra id map rows, only the first range is '
                  'supported', len(rows) - 1)

    first = rows[0]
    if len(first) != 3:
        raise ValueError('malformed id map row %r' % ' '.join(first))
    return tuple(int(v) for v in first)


def _read_map(pid, name):
    path = os.path.join(CONF.sysbox.proc_path, str(pid), name)
    try:
        with open(path, 'r') as f:
            return parse_map(f.read())
    except (OSError, ValueError) as e:
        raise exception.InvalidIdMap(pid=pid, path=path, reason=e)


def get_id_mapping(pid):
    """Return the IdMapping of the process ``pid``.

    :raises: InvalidIdMap if the map files are missing or malformed, e.g.
             when the container is not running.
    """
    if not pid:
        raise exception.InvalidIdMap(
            pid=pid, path=CONF.sysbox.proc_path,
            reason='container is not running')

    cuid, huid, ucount = _read_map(pid, 'uid_map')
    cgid, hgid, gcount = _read_map(pid, 'gid_map')
    mapping = IdMapping(container_uid=cuid, host_uid=huid, uid_count=ucount,
                        container_gid=cgid, host_gid=hgid, gid_count=gcount)
    LOG.debug('Process %(pid)s id mapping: uid %(cuid)s->%(huid)s, '
              'gid %(cgid)s->%(hgid)s',
              {'pid': pid, 'cuid': cuid, 'huid': huid,
               'cgid': cgid, 'hgid': hgid})
    return mapping
