import pytest

from gopixel.errors import PayloadFrozenError
from gopixel.events import Payload


@pytest.mark.unit
class TestPayload:
    """
    Test payload building and cleaning.
    """

    def test_set_is_chainable_and_last_write_wins(self) -> None:
        payload = Payload().set("title", "Home").set("lang", "en").set("title", "About")

        assert payload == {"title": "About", "lang": "en"}
        assert payload.size() == 2

    def test_keys_keep_insertion_order(self) -> None:
        payload = Payload().set("b", 1).set("a", 2).set("c", 3)

        assert list(payload) == ["b", "a", "c"]

    def test_clean_drops_none_at_every_level(self) -> None:
        payload = (
            Payload()
            .set("title", "Home")
            .set("referrer", None)
            .set(
                "location",
                Payload().set("host", "example.com").set("port", None),
            )
        )

        cleaned = payload.clean()

        assert cleaned == {"title": "Home", "location": {"host": "example.com"}}
        assert isinstance(cleaned["location"], Payload)

    def test_clean_keeps_falsy_values(self) -> None:
        payload = Payload().set("zero", 0).set("empty", "").set("off", False)

        assert payload.clean() == {"zero": 0, "empty": "", "off": False}

    def test_nested_payload_with_only_none_keeps_parent_key(self) -> None:
        payload = Payload().set("seo", Payload().set("description", None).set("keywords", None))

        cleaned = payload.clean()

        assert "seo" in cleaned
        assert cleaned["seo"] == {}

    def test_clean_is_idempotent(self) -> None:
        payload = (
            Payload()
            .set("a", 1)
            .set("b", None)
            .set("nested", Payload().set("c", None).set("d", Payload().set("e", "x")))
        )

        once = payload.clean()
        twice = once.clean()

        assert twice == once

    def test_clean_does_not_mutate_input(self) -> None:
        nested = Payload().set("port", None)
        payload = Payload().set("referrer", None).set("location", nested)

        payload.clean()

        assert payload == {"referrer": None, "location": {"port": None}}
        assert payload["location"] is nested

    def test_plain_dict_values_are_opaque(self) -> None:
        payload = Payload().set("raw", {"kept": None})

        assert payload.clean() == {"raw": {"kept": None}}

    def test_from_mapping_converts_nested_mappings(self) -> None:
        payload = Payload.from_mapping({"screen": {"width": 1920, "depth": None}})

        assert isinstance(payload["screen"], Payload)
        assert payload.clean() == {"screen": {"width": 1920}}

    def test_frozen_payload_rejects_every_mutation(self) -> None:
        nested = Payload().set("host", "example.com")
        payload = Payload().set("location", nested).freeze()

        assert payload.is_frozen
        assert nested.is_frozen

        with pytest.raises(PayloadFrozenError):
            payload.set("title", "Home")
        with pytest.raises(PayloadFrozenError):
            nested["port"] = 443
        with pytest.raises(PayloadFrozenError):
            payload.update(title="Home")
        with pytest.raises(PayloadFrozenError):
            del payload["location"]
        with pytest.raises(PayloadFrozenError):
            payload.pop("location")
        with pytest.raises(PayloadFrozenError):
            payload.clear()

    def test_frozen_error_is_a_type_error(self) -> None:
        payload = Payload().freeze()

        with pytest.raises(TypeError):
            payload["key"] = "value"

    def test_clean_of_frozen_payload_is_writable(self) -> None:
        payload = Payload().set("a", 1).freeze()

        cleaned = payload.clean()
        cleaned.set("b", 2)

        assert cleaned == {"a": 1, "b": 2}
