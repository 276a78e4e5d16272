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

from oslo_config import cfg

sysbox_group = cfg.OptGroup(
    'sysbox',
    title='Sysbox Options',
    help="""
Options describing the Sysbox installation and host kernel that the copy
tool inspects in order to work out how a container's root filesystem is
exposed on the host.
""")

ALL_OPTS = [
    cfg.StrOpt('data_root',
               default='/var/lib/sysbox',
               help="""
Sysbox data root directory.

When Sysbox keeps a private clone of a container's root filesystem, the clone
lives under ``<data_root>/rootfs/<container-id>``.
"""),
    cfg.StrOpt('runtime',
               default='sysbox-runc',
               help="""
Name of the Docker runtime that a target container must be using.

Containers created with any other runtime are rejected before anything is
copied.
"""),
    cfg.StrOpt('docker_bin',
               default='docker',
               help='Docker command line client used for inspect and cp.'),
    cfg.StrOpt('idmapped_mount_min_kernel',
               default='5.19',
               help="""
First kernel version supporting overlayfs on top of ID-mapped mounts.

On such kernels Sysbox exposes the container's files through the storage
driver's upper directory without any ID translation.
"""),
    cfg.StrOpt('shiftfs_module',
               default='shiftfs',
               help='Name of the shiftfs kernel module.'),
    cfg.StrOpt('proc_path',
               default='/proc',
               help="""
Mount point of procfs.

Used to read ``<proc_path>/modules`` and the ``uid_map``/``gid_map`` files of
a container's init process.
"""),
]


def register_opts(conf):
    conf.register_group(sysbox_group)
    conf.register_opts(ALL_OPTS, group=sysbox_group)


def list_opts():
    return {sysbox_group: ALL_OPTS}
