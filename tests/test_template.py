# tests/test_template.py
"""Tests for Template, its JSON form and the render environment."""
import io
import json
import threading

import pytest

from helperbars.config.settings import RenderConfig
from helperbars.core.cache import TTLCache
from helperbars.core.coercion import JSONNumber, loads_with_numbers
from helperbars.core.templating import (
    HelperRegistry,
    RenderEnvironment,
    Template,
    TemplateJSONEncoder,
    decode_template_fields,
    get_default_environment,
    parse,
)
from helperbars.exceptions import ConfigError, RenderError, TemplateSyntaxError


class TestExecution:
    """The three result shapes of a render."""

    def test_execute_to_string(self, env):
        assert Template("Hi {{name}}", env).execute_to_string({"name": "Ann"}) == "Hi Ann"

    def test_execute_writes_to_stream(self, env):
        out = io.StringIO()
        Template("{{add 2 3}}", env).execute({}, out)
        assert out.getvalue() == "5"

    def test_failed_render_writes_nothing(self, env):
        out = io.StringIO()
        with pytest.raises(RenderError):
            Template('partial {{ge "x" 1}}', env).execute({}, out)
        assert out.getvalue() == ""

    def test_execute_to_int(self, env):
        assert Template("{{add 40 2}}", env).execute_to_int({}) == 42
        assert Template("-{{n}}", env).execute_to_int({"n": JSONNumber("7")}) == -7

    def test_execute_to_int_rejects_non_integers(self, env):
        for source in ("abc", "4.2", " 42", "", "٣٤"):
            with pytest.raises(RenderError):
                Template(source, env).execute_to_int({})

    def test_helper_error_aborts_render(self, env):
        with pytest.raises(RenderError) as excinfo:
            Template('{{ge total 1}}', env).execute_to_string({"total": "lots"})
        assert 'x-value of comparison "ge"' in str(excinfo.value)

    def test_none_data(self, env):
        assert Template("[{{missing}}]", env).execute_to_string(None) == "[]"

    def test_syntax_error(self, env):
        with pytest.raises(TemplateSyntaxError):
            Template("{{#each items}}never closed", env)

    @pytest.mark.parametrize("source", [
        "{{#if x}}yes",
        "{{#if x}}{{#each y}}{{/if}}",
        "{{#if x}}yes{{/each}}",
        "stray {{/if}}",
        "{{^items}}none",
    ])
    def test_unbalanced_blocks_are_rejected(self, env, source):
        with pytest.raises(TemplateSyntaxError):
            Template(source, env)

    @pytest.mark.parametrize("source, expected", [
        ("{{#if x}}a{{else}}b{{/if}}", "b"),
        ("{{#if x}}a{{^}}b{{/if}}", "b"),
        ("{{^x}}none{{/x}}", "none"),
        ("{{! {{#if x}}ok", "ok"),
        ("{{#with (dict \"k\" 1)}}{{#if k}}{{k}}{{/if}}{{/with}}", "1"),
    ])
    def test_balanced_blocks_compile(self, env, source, expected):
        assert Template(source, env).execute_to_string({}) == expected

    def test_parse_uses_default_environment(self):
        template = parse("{{add 1 1}}")
        assert template.environment is get_default_environment()
        assert template.execute_to_string({}) == "2"


class TestJSONForm:
    """Templates embedded in JSON documents as string values."""

    def test_round_trip_is_byte_identical(self, env):
        raw = '"{{#with (cacheSet \\"k\\" 5 \\"1m\\")}}{{/with}}{{cacheGet \\"k\\"}} cafÃ©"'
        template = Template.from_json(raw, env)
        assert template.to_json() == raw
        assert Template.from_json(template.to_json(), env) == template

    def test_from_json_renders(self, env):
        template = Template.from_json(b'"{{#with (cacheSet \\"test\\" 5 \\"1m\\")}}{{/with}}{{cacheGet \\"test\\"}}"', env)
        assert template.execute_to_string({}) == "5"

    def test_from_json_requires_a_string(self, env):
        with pytest.raises(TemplateSyntaxError):
            Template.from_json("42", env)
        with pytest.raises(TemplateSyntaxError):
            Template.from_json("not json", env)

    def test_document_encoding(self, env):
        doc = decode_template_fields({"body": "{{name}}", "retries": 3}, ["body", "absent"], env)
        assert isinstance(doc["body"], Template)
        assert doc["body"].execute_to_string({"name": "x"}) == "x"
        assert json.dumps(doc, cls=TemplateJSONEncoder) == '{"body": "{{name}}", "retries": 3}'

    def test_document_field_must_be_text(self, env):
        with pytest.raises(TemplateSyntaxError):
            decode_template_fields({"body": 3}, ["body"], env)

    def test_equality_depends_on_environment(self, env):
        other = RenderEnvironment()
        assert Template("x", env) == Template("x", env)
        assert Template("x", env) != Template("x", other)
        assert len({Template("x", env), Template("x", env)}) == 1


class TestCacheHelpers:
    def test_set_then_get(self, render):
        assert render('{{#with (cacheSet "test" 5 "1m")}}{{/with}}{{cacheGet "test"}}') == "5"

    def test_set_returns_value(self, render):
        assert render('{{cacheSet "k" "v" "1m"}}') == "v"

    def test_overwrite(self, render):
        render('{{cacheSet "test" 5 "1m"}}')
        assert render('{{#with (cacheSet "test" 6 "1m")}}{{/with}}{{cacheGet "test"}}') == "6"

    def test_expired_value_is_gone(self, render, clock):
        render('{{cacheSet "test" 5 "1m"}}')
        clock.advance(59)
        assert render('{{cacheGet "test"}}') == "5"
        clock.advance(2)
        assert render('{{cacheGet "test"}}') == ""

    def test_check_then_set(self, render):
        source = '{{#if (cacheGet "test2")}}{{cacheGet "test2"}}{{else}}{{cacheSet "test2" "newVal" "1m"}}{{/if}}'
        assert render(source) == "newVal"
        assert render(source) == "newVal"

    def test_bad_duration(self, render):
        with pytest.raises(RenderError):
            render('{{cacheSet "k" 1 "forever"}}')

    def test_caches_are_per_environment(self, env):
        other = RenderEnvironment()
        env.interpolate({}, '{{cacheSet "shared" "here" "1m"}}')
        assert other.interpolate({}, '{{cacheGet "shared"}}') == ""

    def test_injected_caches_are_used(self, clock):
        template_cache = TTLCache(sweep_interval=60, clock=clock)
        token_cache = TTLCache(sweep_interval=60, clock=clock)
        env = RenderEnvironment(template_cache=template_cache, token_cache=token_cache)
        assert env.template_cache is template_cache
        assert env.token_cache is token_cache
        env.interpolate({}, '{{cacheSet "k" "v" "1m"}}')
        assert template_cache.get("k") == ("v", True)
        clock.advance(61)
        assert template_cache.get("k") == (None, False)


class TestInterpolate:
    def test_interpolate(self, env):
        assert env.interpolate({"city": "Fuzhou"}, "to {{city}}") == "to Fuzhou"

    def test_interpolate_map(self, env):
        mapping = loads_with_numbers('{"a": "{{x}}", "n": 1.5, "b": true, "nested": {"c": "{{x}}!"}, "list": [1]}')
        result = env.interpolate_map({"x": "X"}, mapping)
        assert result == {"a": "X", "n": 1.5, "b": True, "nested": {"c": "X!"}, "list": [JSONNumber("1")]}

    def test_interpolate_map_propagates_errors(self, env):
        with pytest.raises(RenderError):
            env.interpolate_map({}, {"a": {"b": '{{ge "x" 1}}'}})


class TestPartials:
    def test_named_partial(self, env):
        env.load_partial("greeting", "Hello {{name}}")
        assert env.interpolate({"name": "Ann"}, "{{> greeting}}!") == "Hello Ann!"

    def test_partial_loaded_after_parse(self, env):
        template = Template("[{{> footer}}]", env)
        env.load_partial("footer", "bye")
        assert template.execute_to_string({}) == "[bye]"

    def test_partial_files_named_by_stem(self, env, tmp_path):
        (tmp_path / "address.hbs").write_text("{{street}}, {{city}}", encoding="utf-8")
        env.load_partial_files(tmp_path / "address.hbs")
        assert env.interpolate({"street": "1 Main", "city": "X"}, "{{> address}}") == "1 Main, X"

    def test_partials_from_config(self, tmp_path):
        (tmp_path / "sig.hbs").write_text("-- {{me}}", encoding="utf-8")
        env = RenderEnvironment(config=RenderConfig(partials=[tmp_path / "sig.hbs"]))
        assert env.interpolate({"me": "bot"}, "{{> sig}}") == "-- bot"

    def test_missing_partial_file(self, env, tmp_path):
        with pytest.raises(ConfigError):
            env.load_partial_files(tmp_path / "nope.hbs")

    def test_partial_syntax_error(self, env):
        with pytest.raises(TemplateSyntaxError):
            env.load_partial("broken", "{{#if x}}")


class TestRegistry:
    def test_registry_is_read_only(self, env):
        with pytest.raises(TypeError):
            env.registry["uuid"] = lambda: "fixed"

    def test_replace_returns_new_registry(self):
        base = HelperRegistry({"a": lambda: 1})
        changed = base.replace("a", lambda: 2)
        assert base["a"]() == 1
        assert changed["a"]() == 2

    def test_engine_helpers_drop_scope_argument(self):
        registry = HelperRegistry({"double": lambda n: n * 2})
        assert registry.engine_helpers["double"]({"scope": 1}, 4) == 8

    def test_register_helper(self, env):
        template = Template("{{shout word}}", env)
        env.register_helper("shout", lambda s: s.upper() + "!")
        assert template.execute_to_string({"word": "hey"}) == "HEY!"

    def test_every_documented_helper_is_registered(self, env):
        names = {
            "toJSON", "parseJSON", "formatTime", "formatUnix", "formatUnixTZ", "formatUnixFull",
            "formatUnixFullTZ", "multiply", "ge", "add", "addInt64", "dict", "coalesce", "first", "last",
            "split", "sortMap", "normalize_email", "fingerprint", "fingerprint_address", "onlyDigits",
            "onlyAlpha", "left", "right", "uuid", "cacheSet", "cacheGet", "getAuthXBearerToken",
            "parseCIDR", "toApproxBigDuration", "toAmount", "http", "http_data", "joseSign",
            "joseVerifySignature", "joseEncrypt", "joseDecrypt", "UNSAFE_render", "randomFloat64",
            "randomInt", "now", "timestamp", "env", "trim", "toLower", "unquote", "nilSafeIndex",
            "nilSafeIndexChain", "parseTime", "maybeParseTime", "formatAnyTime", "maybeFormatAnyTime",
            "int", "int64", "float64", "atoi", "b64enc", "b64dec", "ternary", "sha1sum", "sha256sum",
            "encryptAES", "decryptAES", "nospace", "substr", "regexMatch", "regexReplaceAll",
            "gcloud_storage_get",
        }
        assert names <= set(env.registry)

    def test_concurrent_renders(self, env):
        errors = []

        def worker(n):
            try:
                for i in range(50):
                    key = f"{n}-{i}"
                    out = env.interpolate({"k": key}, '{{cacheSet k k "1m"}}|{{cacheGet k}}')
                    assert out == f"{key}|{key}"
            except Exception as e:  # collected for the main thread
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []
