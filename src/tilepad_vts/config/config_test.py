import os
import shutil
import tempfile
import unittest

from configobj import ConfigObj, ConfigObjError
from hamcrest import assert_that, calling, equal_to, has_property, is_, is_not, none, raises

from tilepad_vts.config.config import PluginConfig, apply_conf, apply_conf_path, config_path, fetch_conf_path, \
    load_plugin_config, map_os_name, read_config_file

package_dir = os.path.dirname(__file__)


class ConfigTestCase(unittest.TestCase):

    def setUp(self):
        self.local = tempfile.mkdtemp()
        self.home = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.local)
        shutil.rmtree(self.home)

    def write(self, directory, text):
        with open(os.path.join(directory, 'tilepad_vts.cfg'), 'w') as f:
            f.write(text)

    def load(self):
        return load_plugin_config(local_directory=self.local, user_directory=self.home)

    def test_config_file_not_found(self):
        assert_that(calling(read_config_file).with_args('blah'), raises(IOError))

    def test_config_file_invalid_syntax(self):
        self.write(self.local, '[[[vts\n')
        file = os.path.join(self.local, 'tilepad_vts.cfg')
        assert_that(calling(read_config_file).with_args(file), raises(ConfigObjError, ".* at .*tilepad_vts.cfg"))

    def test_can_retrieve_config_file(self):
        for flavor in ('default', 'schema'):
            file = config_path("tilepad_vts", package_dir, flavor)
            assert_that(os.path.exists(file), is_(True), "expected config path %s to exist" % file)

    def test_defaults(self):
        config = self.load()
        assert_that(config.host, is_('localhost'))
        assert_that(config.port, is_(8001))
        assert_that(config.probe_period, is_(5.0))
        assert_that(config.token_request_timeout, is_(120.0))
        assert_that(config.plugin_name, is_('Tilepad VT Studio'))
        assert_that(config.plugin_developer, is_('Jacobtread'))
        assert_that(config.plugin_icon, is_(none()))
        assert_that(config.level, is_('INFO'))

    def test_defaults_match_unconfigured(self):
        assert_that(self.load().__dict__, is_(equal_to(PluginConfig().__dict__)))

    def test_user_override(self):
        self.write(self.home, '[vts]\nport = 8002\n')
        assert_that(self.load().port, is_(8002))

    def test_local_overrides_user(self):
        self.write(self.home, '[vts]\nport = 8002\nhost = studio\n')
        self.write(self.local, '[vts]\nport = 8003\n[logging]\nlevel = DEBUG\n')
        config = self.load()
        assert_that(config.port, is_(8003))
        assert_that(config.host, is_('studio'))
        assert_that(config.level, is_('DEBUG'))

    def test_invalid_value(self):
        self.write(self.local, '[vts]\nport = many\n')
        assert_that(calling(self.load), raises(ConfigObjError, "the config file tilepad_vts failed validation vts.port"))

    def test_map_os_name(self):
        assert_that(map_os_name('Windows'), is_('windows'))
        assert_that(map_os_name('Darwin'), is_('osx'))
        assert_that(map_os_name('darwin'), is_('osx'))

    def test_non_existent_config_path(self):
        sut = ConfigObj()
        assert_that(fetch_conf_path(sut, ['vts']), is_(none()))

    def test_non_existent_apply_config_path(self):
        target = PluginConfig()
        apply_conf_path(ConfigObj(), ['vts'], target)
        assert_that(target.port, is_(8001))

    def test_apply_conf_sets_known_attributes_only(self):
        target = PluginConfig()
        apply_conf({'port': 9000, 'colour': 'blue'}, target)
        assert_that(target.port, is_(9000))
        assert_that(target, is_not(has_property('colour')))

    def test_repr_leaves_out_icon(self):
        config = PluginConfig()
        config.plugin_icon = 'aWNvbg=='
        assert_that('aWNvbg' in repr(config), is_(False))
