import logging
import os

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from configobj.validate import Validator

from chissoku.errors import ConfigurationError
from chissoku.support.mixins import StringerMixin

logger = logging.getLogger(__name__)

# The default extension for configuration files
config_extension = '.cfg'

config_name = 'chissoku'
config_directory = os.path.dirname(__file__)


def config_flavor(name, flavor=None):
    configname = name if not flavor else name + '.' + flavor
    return configname


def config_filename(name, directory=None):
    """
    Determines the location of a config file in the given directory.
    """
    return os.path.join(directory, name + config_extension)


def user_config_filename(name):
    """ the user's own configuration file, such as ~/.chissoku.cfg """
    return os.path.expanduser('~/.' + name + config_extension)


def load_config_file_base(file, must_exist=True):
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :return: The ConfigObj instance for the file.
    """
    try:
        return ConfigObj(file, file_error=must_exist) \
            if must_exist or os.path.exists(file) else ConfigObj()
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def config_flavor_file(name, directory, subpart=None) -> ConfigObj:
    """
    Loads a specialization of a config file. The configuration file is expected to be named
    after the base, followed by a period and then the specialization, if the specialization is given,
    otherwise just the base name.
    :param name:    The name of the base configuration
    :param subpart: The name of the specialization.
    :return: The ConfigObj for the configuration file.
    """
    configname = config_flavor(name, subpart)
    file = config_filename(configname, directory)
    return load_config_file_base(file, False)


def load_config(name=config_name, directory=config_directory, config_file=None, overrides=None, user_file=None):
    """
        Loads all the configuration that relates to the given name.
        Configurations are merged in this order, later values replacing earlier ones:
        - the default specialization, next to the schema
        - the user's file in their home directory
        - the file given by config_file
        - the overrides, typically from the command line
        The result is validated against the schema specialization, which also converts the values to their types
        and fills in defaults.
    :raises ConfigurationError: a file could not be read, or the result failed validation
    :return: the validated ConfigObj
    """
    if user_file is None:
        user_file = user_config_filename(name)
    try:
        layers = [config_flavor_file(name, directory, 'default'),
                  load_config_file_base(user_file, must_exist=False)]
        if config_file:
            layers.append(load_config_file_base(config_file))
    except (ConfigObjError, IOError) as e:
        raise ConfigurationError("unable to read configuration: %s" % e) from e

    config = ConfigObj(configspec=config_filename(config_flavor(name, 'schema'), directory))
    for layer in layers:
        config.merge(layer)
    if overrides:
        config.merge(overrides)

    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        errors = []
        for section_list, key, error in flatten_errors(config, result):
            path = '.'.join(section_list + [key if key is not None else '<section>'])
            errors.append("%s: %s" % (path, error if error else 'missing'))
        raise ConfigurationError("the configuration %s failed validation: %s" % (name, "; ".join(errors)))
    return config


def apply_conf(conf: Section, target, keys=None):
    """
    Applies the attributes contained in a configuration object to a target object.
    It does this by iterating over the items in the configuration and setting any attributes with the same name.
    :param keys: when given, only these names are applied
    """
    for k, v in conf.items():
        if keys is not None and k not in keys:
            continue
        if hasattr(target, k):
            setattr(target, k, v)


def section_keys(config: ConfigObj, name):
    """ the value names the schema defines for a section """
    spec = config.configspec.get(name) if config.configspec is not None else None
    return set(spec.scalars) if spec is not None else set()


class Options(StringerMixin):
    """
    The top level run options. Outputter sections are kept in `config` and applied to the outputters
    by configure_outputters.
    """

    def __init__(self, config: ConfigObj=None):
        self.output = ['stdout']
        self.tags = []
        self.port = 'auto'
        self.debug = False
        self.quiet = False
        self.config = config
        if config is not None:
            apply_conf(config, self, keys=config.scalars)

    def section(self, name) -> dict:
        """
        :return: the configured values of a section, limited to those the schema knows about
        """
        config = self.config
        if config is None or name not in config.sections:
            return {}
        keys = section_keys(config, name)
        return {k: v for k, v in config[name].items() if k in keys}


def load_options(config_file=None, overrides=None, user_file=None) -> Options:
    config = load_config(config_file=config_file, overrides=overrides, user_file=user_file)
    return Options(config)


def configure_outputters(available, options: Options):
    """ applies each outputter's section of the options to the outputter of the same name. """
    for name, outputter in available.items():
        section = options.section(name)
        if section:
            apply_conf(section, outputter)
