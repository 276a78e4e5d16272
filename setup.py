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
import setuptools

project = 'sysbox-cp'

requires = [
    'oslo.concurrency>=5.0.0',
    'oslo.config>=9.0.0',
    'oslo.i18n>=5.1.0',
    'oslo.log>=5.0.0',
    'oslo.serialization>=5.0.0',
    'oslo.utils>=6.0.0',
    'pbr>=5.8.0',
]

test_requires = [
    'fixtures>=3.0.0',
    'stestr>=3.2.0',
    'testtools>=2.5.0',
]


setuptools.setup(
      name=project,
      version='1.0.0',
      description='docker cp with file ownership fix-ups for Sysbox '
                  'containers',
      classifiers=[
          'Environment :: Console',
          'Intended Audience :: System Administrators',
          'License :: OSI Approved :: Apache Software License',
          'Operating System :: POSIX :: Linux',
          'Programming Language :: Python',
          'Programming Language :: Python :: 3',
          ],
      python_requires='>=3.8',
      packages=setuptools.find_packages(include=['sysbox_cp', 'sysbox_cp.*']),
      install_requires=requires,
      extras_require={'test': test_requires},
      include_package_data=True,
      entry_points={
          'console_scripts': [
              'sysbox-docker-cp = sysbox_cp.cmd.docker_cp:main',
          ],
          'oslo.config.opts': [
              'sysbox_cp.conf = sysbox_cp.conf.opts:list_opts',
          ],
      },
      py_modules=[])
