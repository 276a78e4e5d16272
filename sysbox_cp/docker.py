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

"""Thin wrappers around the docker command line client.

Only the handful of queries the copy tool needs are exposed: container
inspection, the daemon's userns-remap setting and the raw ``docker cp``.
"""

from dataclasses import dataclass
from typing import Optional

from oslo_concurrency import processutils
from oslo_log import log as logging
from oslo_serialization import jsonutils

import sysbox_cp.conf
from sysbox_cp import exception

CONF = sysbox_cp.conf.CONF
LOG = logging.getLogger(__name__)

_NOT_FOUND_MARKERS = ('No such container', 'No such object')


@dataclass(frozen=True)
class ContainerDescriptor():
    name: str
    id: str
    pid: int
    runtime: str
    userns_remap: bool
    merged_dir: Optional[str]
    upper_dir: Optional[str]
    workdir: str = '/'

    @classmethod
    def from_inspect(cls, data, daemon_userns_remap=False):
        """Build a descriptor out of one ``docker inspect`` record.

        :param data: dict decoded from the inspect JSON output
        :param daemon_userns_remap: whether the docker daemon runs with
                                    userns-remap enabled
        """
        host_config = data.get('HostConfig') or {}
        graph_data = (data.get('GraphDriver') or {}).get('Data') or {}
        # A container may opt out of the daemon-wide remapping
        userns_mode = host_config.get('UsernsMode') or ''
        return cls(
            name=data.get('Name', '').lstrip('/'),
            id=data['Id'],
            pid=(data.get('State') or {}).get('Pid') or 0,
            runtime=host_config.get('Runtime') or '',
            userns_remap=daemon_userns_remap and userns_mode != 'host',
            merged_dir=graph_data.get('MergedDir'),
            upper_dir=graph_data.get('UpperDir'),
            workdir=(data.get('Config') or {}).get('WorkingDir') or '/',
        )


def _docker(*args):
    cmd = (CONF.sysbox.docker_bin,) + args
    try:
        out, _err = processutils.execute(*cmd)
    except processutils.ProcessExecutionError as e:
        stderr = (e.stderr or '').strip()
        raise exception.CommandFailed(cmd=' '.join(cmd),
                                      exit_code=e.exit_code,
                                      stderr=stderr)
    return out


def daemon_userns_remap():
    """Return True when the docker daemon runs with userns-remap."""
    out = _docker('info', '--format', '{{json .SecurityOptions}}')
    security_options = jsonutils.loads(out or 'null') or []
    return any('name=userns' in opt for opt in security_options)


def inspect_container(name):
    """Look up a container and return its ContainerDescriptor.

    :raises: ContainerNotFound if docker doesn't know the container.
    """
    try:
        out = _docker('inspect', '--type', 'container', name)
    except exception.CommandFailed as e:
        if any(m in e.kwargs['stderr'] for m in _NOT_FOUND_MARKERS):
            raise exception.ContainerNotFound(name=name)
        raise

    records = jsonutils.loads(out)
    if not records:
        raise exception.ContainerNotFound(name=name)

    container = ContainerDescriptor.from_inspect(
        records[0], daemon_userns_remap=daemon_userns_remap())
    LOG.debug('Container %(name)s: id=%(id)s pid=%(pid)s '
              'runtime=%(runtime)s userns_remap=%(userns)s',
              {'name': container.name, 'id': container.id,
               'pid': container.pid, 'runtime': container.runtime,
               'userns': container.userns_remap})
    return container


def copy(src, dest, archive=False, follow_link=False):
    """Run ``docker cp`` with the given flags, unmodified.

    :raises: CopyFailed carrying the exit code of docker on failure.
    """
    cmd = [CONF.sysbox.docker_bin, 'cp']
    if archive:
        cmd.append('--archive')
    if follow_link:
        cmd.append('--follow-link')
    cmd.extend([src, dest])

    LOG.debug('Copying %(src)s to %(dest)s', {'src': src, 'dest': dest})
    try:
        processutils.execute(*cmd)
    except processutils.ProcessExecutionError as e:
        raise exception.CopyFailed(exit_code=e.exit_code,
                                   reason=(e.stderr or '').strip())
