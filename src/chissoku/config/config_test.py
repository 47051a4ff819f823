import os
import tempfile
import textwrap
import unittest

from hamcrest import assert_that, calling, equal_to, has_entries, is_, raises

from chissoku.config.config import Options, apply_conf, config_filename, config_flavor, configure_outputters, \
    load_config, load_options
from chissoku.errors import ConfigurationError

missing_user_file = os.path.join(tempfile.gettempdir(), "chissoku-test-no-such-user.cfg")


class ConfigFilesTestCase(unittest.TestCase):

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.directory.cleanup()

    def write(self, name, content):
        path = os.path.join(self.directory.name, name)
        with open(path, "w") as f:
            f.write(textwrap.dedent(content))
        return path


class ConfigNamingTest(unittest.TestCase):

    def test_config_flavor(self):
        assert_that(config_flavor("chissoku"), is_("chissoku"))
        assert_that(config_flavor("chissoku", "schema"), is_("chissoku.schema"))

    def test_config_filename(self):
        assert_that(config_filename("chissoku.default", "dir"), is_(os.path.join("dir", "chissoku.default.cfg")))

    def test_packaged_files_exist(self):
        directory = os.path.dirname(__file__)
        for flavor in ("default", "schema"):
            file = config_filename(config_flavor("chissoku", flavor), directory)
            assert_that(os.path.exists(file), is_(True), "expected config path %s to exist" % file)


class LoadConfigTest(ConfigFilesTestCase):

    def test_defaults(self):
        config = load_config(user_file=missing_user_file)
        assert_that(config["output"], is_(["stdout"]))
        assert_that(config["tags"], is_([]))
        assert_that(config["port"], is_("auto"))
        assert_that(config["debug"], is_(False))
        assert_that(config["stdout"]["interval"], is_(60))
        assert_that(config["mqtt"]["qos"], is_(0))
        assert_that(config["mqtt"]["client_id"], is_("chissoku"))
        assert_that(config["prometheus"]["port"], is_(9090))

    def test_layers_in_order(self):
        user = self.write("user.cfg", """
            tags = home,
            port = /dev/ttyUSB0
            [mqtt]
            topic = user/topic
            """)
        local = self.write("local.cfg", """
            output = stdout, mqtt
            [mqtt]
            address = tcp://broker:1883
            qos = 1
            """)
        config = load_config(config_file=local, user_file=user, overrides={"mqtt": {"topic": "cli/topic"}})
        assert_that(config["output"], is_(["stdout", "mqtt"]))
        assert_that(config["tags"], is_(["home"]))
        assert_that(config["port"], is_("/dev/ttyUSB0"))
        assert_that(dict(config["mqtt"]), has_entries(address="tcp://broker:1883", qos=1, topic="cli/topic"))

    def test_invalid_value(self):
        local = self.write("bad.cfg", """
            [prometheus]
            port = 70000
            """)
        assert_that(calling(load_config).with_args(config_file=local, user_file=missing_user_file),
                    raises(ConfigurationError, "prometheus.port"))

    def test_invalid_override(self):
        assert_that(calling(load_config).with_args(overrides={"stdout": {"interval": "often"}},
                                                   user_file=missing_user_file),
                    raises(ConfigurationError, "stdout.interval"))

    def test_missing_config_file(self):
        assert_that(calling(load_config).with_args(config_file=os.path.join(self.directory.name, "nope.cfg"),
                                                   user_file=missing_user_file),
                    raises(ConfigurationError, "unable to read configuration"))

    def test_invalid_syntax(self):
        local = self.write("syntax.cfg", "[[[nested\n")
        assert_that(calling(load_config).with_args(config_file=local, user_file=missing_user_file),
                    raises(ConfigurationError))


class Target:
    a = None
    b = None


class OptionsTest(ConfigFilesTestCase):

    def test_defaults_without_config(self):
        options = Options()
        assert_that(options.output, is_(["stdout"]))
        assert_that(options.section("mqtt"), is_({}))

    def test_load_options(self):
        options = load_options(overrides={"output": ["prometheus"], "tags": ["x", "y"], "debug": True},
                               user_file=missing_user_file)
        assert_that(options.output, is_(["prometheus"]))
        assert_that(options.tags, is_(["x", "y"]))
        assert_that(options.debug, is_(True))
        assert_that(options.quiet, is_(False))

    def test_section_limited_to_schema(self):
        local = self.write("extra.cfg", """
            [mqtt]
            client = not an option
            topic = t
            """)
        options = load_options(config_file=local, user_file=missing_user_file)
        section = options.section("mqtt")
        assert_that("client" in section, is_(False))
        assert_that(section["topic"], is_("t"))

    def test_configure_outputters(self):
        options = load_options(overrides={"stdout": {"interval": 0}}, user_file=missing_user_file)
        stdout = Target()
        stdout.interval = 60
        configure_outputters({"stdout": stdout}, options)
        assert_that(stdout.interval, is_(0))

    def test_apply_conf(self):
        target = Target()
        apply_conf({"a": 1, "b": 2, "c": 3}, target, keys=["a", "c"])
        assert_that(target.a, is_(equal_to(1)))
        assert_that(target.b, is_(None))
        assert_that(hasattr(target, "c"), is_(False))
