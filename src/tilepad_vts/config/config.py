"""
Plugin settings, read from layered configobj files and validated against a schema.

For the name `tilepad_vts` the files are, lowest precedence first:

    <package>/tilepad_vts.default.cfg   shipped defaults
    <package>/tilepad_vts.<os>.cfg      platform specific defaults (windows, osx, linux)
    ~/tilepad_vts.cfg                   per user
    ./tilepad_vts.cfg                   local to the working directory

<package>/tilepad_vts.schema.cfg gives the type, range and default of each value.
"""
import os
import platform

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from validate import Validator

config_extension = '.cfg'

# the base name of the plugin configuration files
config_name = 'tilepad_vts'


def config_path(name, directory, flavor=None):
    """
    >>> config_path('tilepad_vts', 'conf', 'schema').replace(os.sep, '/')
    'conf/tilepad_vts.schema.cfg'
    """
    filename = name + '.' + flavor if flavor else name
    return os.path.join(directory, filename + config_extension)


def read_config_file(file, must_exist=True) -> ConfigObj:
    """
    Parses one configuration file.
    :param must_exist: when False, a missing file reads as an empty configuration.
    :raises ConfigObjError: the file could not be parsed. The message names the file.
    """
    if not must_exist and not os.path.exists(file):
        return ConfigObj()
    try:
        return ConfigObj(file, interpolation='Template', file_error=must_exist)
    except ConfigObjError as e:
        raise type(e)('%s at %s' % (e, file))


def map_os_name(name):
    """
    >>> map_os_name('Windows')
    'windows'
    >>> map_os_name("Darwin")
    'osx'
    """
    name = name.lower()
    return 'osx' if name == 'darwin' else name


def os_name():
    return map_os_name(platform.system())


def load_config(name, directory, local_directory=None, user_directory='~') -> ConfigObj:
    """
    Merges the layered configuration files, later layers overriding earlier ones, and validates
    the result. Validation converts each value to the type given in the schema and fills in
    the defaults for values no layer sets.
    :param directory: where the default, platform and schema files are
    :param local_directory: where the local override is. Defaults to the working directory.
    :raises ConfigObjError: a file could not be parsed, or a value is not valid.
    """
    layers = [
        config_path(name, directory, 'default'),
        config_path(name, directory, os_name()),
        config_path(name, os.path.expanduser(user_directory)),
        config_path(name, local_directory or os.getcwd()),
    ]
    config = ConfigObj(interpolation='Template', configspec=config_path(name, directory, 'schema'))
    for layer in layers:
        config.merge(read_config_file(layer, must_exist=False))

    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        failed = ['.'.join(sections + [key or '']) for sections, key, _ in flatten_errors(config, result)]
        raise ConfigObjError("the config file %s failed validation %s" % (name, ', '.join(failed)))
    return config


def fetch_conf_path(conf: Section, path):
    """
    Looks up a nested section.
    :param path: the section names, outermost first
    :return: the section, or None if any part of the path is missing
    """
    for p in path:
        conf = conf.get(p, None)
        if conf is None:
            return None
    return conf


def apply_conf_path(conf: Section, name_parts, target):
    """ applies the section at name_parts to target, if there is such a section. """
    conf = fetch_conf_path(conf, name_parts)
    if conf:
        apply_conf(conf, target)


def apply_conf(conf: Section, target):
    """
    Sets each configured value on target as the attribute of the same name.
    Values with no matching attribute are ignored.
    """
    for k, v in conf.items():
        if hasattr(target, k):
            setattr(target, k, v)


class PluginConfig:
    """ The settings of the plugin. The attributes hold the defaults used when no configuration is loaded. """

    def __init__(self):
        self.host = 'localhost'
        self.port = 8001
        self.connect_timeout = 5.0
        self.request_timeout = 10.0
        self.token_request_timeout = 120.0
        self.probe_period = 5.0
        self.plugin_name = 'Tilepad VT Studio'
        self.plugin_developer = 'Jacobtread'
        self.plugin_icon = None
        self.level = 'INFO'

    def __repr__(self):
        return 'PluginConfig(%s)' % ', '.join('%s=%r' % (k, v) for k, v in sorted(self.__dict__.items())
                                              if k != 'plugin_icon')


def load_plugin_config(directory=None, local_directory=None, user_directory='~') -> PluginConfig:
    """
    Loads the plugin configuration files and applies the [vts] and [logging] sections to a PluginConfig.
    :param directory: the location of the shipped configuration. Defaults to this package.
    """
    if directory is None:
        directory = os.path.dirname(__file__)
    conf = load_config(config_name, directory, local_directory, user_directory)
    target = PluginConfig()
    apply_conf_path(conf, ['vts'], target)
    apply_conf_path(conf, ['logging'], target)
    return target
