import pathlib
from configparser import NoOptionError, NoSectionError, RawConfigParser
from io import StringIO
from os import getenv
from os.path import exists as path_exists
from os.path import join as path_join

from deepmock.errors import ConfigError
from deepmock.pattern_config import PatternConfigLoader

DEFAULTS = {
    "loader_modify": "",
    "loader_defer": "",
    "loader_pattern_file": "",
    "loader_use_default_transformers": True,
    "generator_cycle_detection": True,
}

HELP = {
    "loader_modify": "Comma separated module patterns to transform, * for all",
    "loader_defer": "Comma separated packages always imported by the host",
    "loader_pattern_file": "TOML file with [loader] modify and defer lists",
    "loader_use_default_transformers": "Apply the stock transformer chain",
    "generator_cycle_detection": "Cut reference cycles of any length when filling fields",
}


def createFilename(name=None, configdir=None):
    """Create a filename from the given name and configdir."""
    if name is None:
        name = "deepmock.conf"
    if configdir is None:
        configdir = getenv("XDG_CONFIG_HOME")
        if not configdir:
            homedir = getenv("HOME")
            if not homedir:
                raise ConfigError(
                    "Unable to retrieve user home directory: empty HOME environment variable"
                )
            configdir = path_join(homedir, ".config")
    return path_join(configdir, name)


class DeepMockConfig:
    def __init__(self, filename=None, configdir=None, read=False):
        self._parser = ConfigParserWithHelp()
        self.filename = createFilename(filename, configdir)
        if read and path_exists(self.filename):
            self._parser.read([self.filename])

        # Loader options
        self.loader_modify = self.getlist("loader", "modify", DEFAULTS["loader_modify"])
        self.loader_defer = self.getlist("loader", "defer", DEFAULTS["loader_defer"])
        self.loader_pattern_file = self.getstr(
            "loader", "pattern_file", DEFAULTS["loader_pattern_file"]
        )
        self.loader_use_default_transformers = self.getbool(
            "loader", "use_default_transformers", DEFAULTS["loader_use_default_transformers"]
        )

        # Field value generator options
        self.generator_cycle_detection = self.getbool(
            "generator", "cycle_detection", DEFAULTS["generator_cycle_detection"]
        )

        if self.loader_pattern_file:
            patterns = PatternConfigLoader(self.loader_pattern_file).load()
            self.loader_modify = self.loader_modify + patterns.modify
            self.loader_defer = self.loader_defer + patterns.defer

    def write_sample_config(self, write_file=True):
        """Create a sample configuration file and optionally write it."""
        output = StringIO()
        parser = ConfigParserWithHelp()
        config_file = pathlib.Path(self.filename)
        if write_file and config_file.exists():
            raise ConfigError("Configuration file already exists: %s" % self.filename)

        output.write("""# deepmock default configuration file\n""")
        for section_and_key, value in DEFAULTS.items():
            section, key = section_and_key.split("_", maxsplit=1)
            if section not in parser:
                parser.add_section(section)
            parser.set(section, key, str(value), HELP[section_and_key])
        parser.write(output)

        if write_file:
            with config_file.open("w") as file:
                file.write(output.getvalue())
        return output

    def _gettype(self, func, type_name, section, key, default_value):
        try:
            value = func(section, key)
            if func == self._parser.get:
                value = value.strip()
            return value
        except (NoSectionError, NoOptionError):
            return default_value
        except ValueError as err:
            raise ConfigError(
                "Value %s of section %s is not %s! %s" % (key, section, type_name, err)
            )

    def getstr(self, section, key, default_value=None):
        return self._gettype(self._parser.get, "a string", section, key, default_value)

    def getbool(self, section, key, default_value):
        return self._gettype(
            self._parser.getboolean, "a boolean", section, key, default_value
        )

    def getlist(self, section, key, default_value=""):
        value = self.getstr(section, key, default_value)
        if isinstance(value, (list, tuple)):
            return list(value)
        return [item.strip() for item in value.split(",") if item.strip()]


class ConfigParserWithHelp(RawConfigParser):
    """ConfigParser class which records and writes help messages."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.help = {}

    def set(self, section, option, value=None, help=None):
        super().set(section, option, value)
        if help is not None:
            if not self.has_section(section):
                self.add_section(section)
            elif section not in self.help:
                self.help[section] = {}
            if option in self.help[section]:
                raise ConfigError(
                    "Option %s of section %s already has a help message: %s"
                    % (option, section, self.help[section][option])
                )
            self.help[section][option] = help

    def add_section(self, section):
        super().add_section(section)
        self.help[section] = {}

    def _write_section(self, fp, section_name, section_items, delimiter, *args):
        fp.write("\n[%s]\n" % section_name)
        for key, value in section_items:
            if key in self.help.get(section_name, {}):
                fp.write("\n# %s\n" % self.help[section_name][key])

            value = self._interpolation.before_write(self, section_name, key, value)
            if value is not None or not self._allow_no_value:
                value = delimiter + str(value).replace("\n", "\n\t")
            else:
                value = ""
            fp.write("%s%s\n" % (key, value))
        fp.write("#" + "-" * 40 + "\n")

