"""
Provides project-level commands. Commands are run via `python setup.py <command> [args]`

Commands available:

- apidoc: regenerate reST docs for inline pydoc comments
- autobuild: watch for changes to the reST files and rebuild the documentation, refreshing
   the browser.
"""

from setuptools import setup, Command

import os


class RunInRootCommand(Command):
    user_options = []

    def initialize_options(self):
        self.cwd = None

    def finalize_options(self):
        self.cwd = os.getcwd()

    def run(self):
        assert os.getcwd() == self.cwd, 'Must be in package root: %s' % self.cwd
        self.runcmd()

    def runcmd(self):
        pass


class ApiDocCommand(RunInRootCommand):
    description = "regenerates the API docs"

    def runcmd(self):
        os.system('"sphinx-apidoc" -f -e -o docs/apidoc src/tilepad_vts')


class AutoBuildCommand(RunInRootCommand):
    description = "watches the docs for changes and rebuilds them, automatically refreshing the browser page"

    def runcmd(self):
        os.system("sphinx-autobuild docs docs/_build/html -B")


setup(
    name='tilepad-vts',
    version='0.1.0',
    description='VTube Studio plugin for Tilepad: trigger hotkeys and switch models from tiles.',
    url='',
    author='',
    author_email='',
    license='MIT',
    package_dir={'': 'src'},
    packages=['tilepad_vts', 'tilepad_vts.conduit', 'tilepad_vts.config', 'tilepad_vts.connector',
              'tilepad_vts.protocol', 'tilepad_vts.support'],
    package_data={'tilepad_vts.config': ['*.cfg']},
    python_requires='>=3.7',
    install_requires=[
        'configobj>=5.0.6',
        'websocket-client>=1.0',
    ],
    extras_require={
        'test': ['pytest', 'PyHamcrest', 'timeout-decorator'],
    },
    zip_safe=False,
    cmdclass={
        'apidoc': ApiDocCommand,
        'autobuild': AutoBuildCommand
    }
)
