import json

import pytest

from humantyper.registry import DEFAULT_CONFIGS, SelectorConfig, SelectorDirectory
from humantyper.sentences import DEFAULT_SENTENCES, SentenceEntry, SentenceRepository
from humantyper.settings import DEFAULT_COOLDOWN_MS, Settings


class TestSelectorDirectory:
    def test_lookup(self):
        directory = SelectorDirectory()
        assert directory.lookup("web.whatsapp.com") is DEFAULT_CONFIGS["web.whatsapp.com"]
        assert directory.lookup("nowhere.example") is None
        assert directory.lookup(None) is None
        assert "tinder.com" in directory
        assert directory.apps() == sorted(DEFAULT_CONFIGS)

    def test_selector_less_entries_use_type_fallback(self):
        config = SelectorDirectory().lookup("bumble.com")
        assert config.input_selectors == ()
        assert config.fallback_field_type == "textarea"

    def test_from_json(self, tmp_path):
        path = tmp_path / "selectors.json"
        path.write_text(
            json.dumps(
                {
                    "chat.app": {
                        "input_selectors": ["#composer", "textarea"],
                        "send_selectors": ["#send"],
                        "incoming_text_type": "p",
                    }
                }
            )
        )
        directory = SelectorDirectory.from_json(path)
        config = directory.lookup("chat.app")
        assert config.input_selectors == ("#composer", "textarea")
        assert config.send_selectors == ("#send",)
        assert config.incoming_text_type == "p"
        assert directory.lookup("web.whatsapp.com") is None

        merged = SelectorDirectory.from_json(path, include_defaults=True)
        assert "chat.app" in merged and "web.whatsapp.com" in merged

    def test_from_json_rejects_non_object(self, tmp_path):
        path = tmp_path / "selectors.json"
        path.write_text("[]")
        with pytest.raises(ValueError):
            SelectorDirectory.from_json(path)

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValueError):
            SelectorConfig.from_dict({"input_selector": ["#typo"]})

    def test_config_dict_round_trip(self):
        config = DEFAULT_CONFIGS["web.telegram.org"]
        assert SelectorConfig.from_dict(config.to_dict()) == config


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert not s.service_active
        assert s.input_mode == "clear"
        assert s.cooldown_ms == DEFAULT_COOLDOWN_MS
        assert s.is_ignored("com.touchtype.swiftkey")

    def test_validation(self):
        with pytest.raises(ValueError):
            Settings(input_mode="replace")
        with pytest.raises(ValueError):
            Settings(cooldown_ms=-1)

    def test_app_toggles(self):
        s = Settings()
        assert s.is_app_enabled("chat.app")
        assert not s.is_app_enabled(None)
        s.set_app_enabled("chat.app", False)
        assert not s.is_app_enabled("chat.app")

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "settings.json"
        s = Settings(service_active=True, input_mode="append", cooldown_ms=0, app_enabled={"a": False})
        s.save(path)
        loaded = Settings.load(path)
        assert loaded == s

    def test_missing_file_gives_defaults(self, tmp_path):
        assert Settings.load(tmp_path / "missing.json") == Settings()

    def test_unknown_keys_are_dropped(self):
        s = Settings.from_dict({"service_active": True, "theme": "dark"})
        assert s.service_active


class TestSentenceRepository:
    def test_round_robin_skips_blank(self):
        repo = SentenceRepository(
            [SentenceEntry(1, "one"), SentenceEntry(2, "  "), SentenceEntry(3, "three")]
        )
        assert [repo.next() for _ in range(4)] == ["one", "three", "one", "three"]

    def test_empty(self):
        assert SentenceRepository([]).next() == ""
        assert SentenceRepository([SentenceEntry(1, "")]).next() == ""

    def test_by_tag(self):
        repo = SentenceRepository()
        assert [e.id for e in repo.by_tag("opener")] == [1]

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "sentences.json"
        repo = SentenceRepository([SentenceEntry(7, "hi there", "opener"), SentenceEntry(8, "bye")])
        repo.save(path)
        loaded = SentenceRepository.load(path)
        assert loaded.entries == repo.entries

    def test_missing_file_gives_defaults(self, tmp_path):
        repo = SentenceRepository.load(tmp_path / "missing.json")
        assert repo.entries == list(DEFAULT_SENTENCES)

    def test_load_rejects_non_list(self, tmp_path):
        path = tmp_path / "sentences.json"
        path.write_text("{}")
        with pytest.raises(ValueError):
            SentenceRepository.load(path)


class TestSettingsAssignment:
    def test_runtime_changes_are_validated(self):
        s = Settings()
        with pytest.raises(ValueError):
            s.input_mode = "overwrite"
        with pytest.raises(ValueError):
            s.cooldown_ms = -5
        assert s.input_mode == "clear"

        s.input_mode = "append"
        assert s.input_mode == "append"
