"""End-to-end runs of example suites against an in-memory server."""

import pytest
import requests

from api_example_tester.parser.swagger import SpecIndex, load_spec
from api_example_tester.runner.handler import ExampleHandler
from api_example_tester.runner.transport import Transport
from api_example_tester.suite.builder import SuiteBuilder

from conftest import make_response

BASE = "http://localhost:8081/api"


def _run(cases) -> list[str]:
    """Run cases in order, returning the names of failed ones."""
    failed = []
    for case in cases:
        try:
            case.run()
        except AssertionError:
            failed.append(case.name)
    return failed


def _suite(spec_path, session, auth_mode="client"):
    index = SpecIndex(load_spec(spec_path))
    handler = ExampleHandler(index, BASE, transport=Transport(session=session), auth_mode=auth_mode)
    return SuiteBuilder(index, handler, BASE).build()


class TestSanity:
    def test_status_code_only_example_passes(self, fake_session, tmp_path):
        spec = tmp_path / "swagger.yml"
        spec.write_text(
            "swagger: '2.0'\n"
            "paths:\n"
            "  /status:\n"
            "    get:\n"
            "      responses:\n"
            "        200:\n"
            "          description: ok\n"
        )
        session = fake_session({("GET", "/status"): lambda req, q: make_response(200)})
        index = SpecIndex(load_spec(spec))
        handler = ExampleHandler(index, "http://localhost:8081", transport=Transport(session=session))
        cases = list(SuiteBuilder(index, handler, "http://localhost:8081").build().iter_cases())

        assert len(cases) == 1
        assert _run(cases) == []

    def test_sanity_suite(self, fixtures_dir, fake_session):
        session = fake_session({
            ("GET", "/api/status"): lambda req, q: make_response(200),
            ("GET", "/api/info"): lambda req, q: make_response(200, {"version": "1.1"}),
        })
        assert _run(_suite(fixtures_dir / "sanity.yml", session).iter_cases()) == []
        assert [r.url for r in session.sent] == [BASE + "/status", BASE + "/info"]

    def test_wrong_status_fails(self, fixtures_dir, fake_session):
        session = fake_session({
            ("GET", "/api/status"): lambda req, q: make_response(500, "Internal app error"),
            ("GET", "/api/info"): lambda req, q: make_response(200, {"version": "1.1"}),
        })
        assert _run(_suite(fixtures_dir / "sanity.yml", session).iter_cases()) == [
            "200: should return expected HTTP status code",
        ]

    def test_schema_violation_fails(self, fixtures_dir, fake_session):
        session = fake_session({
            ("GET", "/api/status"): lambda req, q: make_response(200),
            ("GET", "/api/info"): lambda req, q: make_response(200, {"version": "1.1", "build": 3, "extra": None}),
        })
        # the body still contains the example subset; the schema allows extra properties
        assert _run(_suite(fixtures_dir / "sanity.yml", session).iter_cases()) == []

        bad = fake_session({
            ("GET", "/api/status"): lambda req, q: make_response(200),
            ("GET", "/api/info"): lambda req, q: make_response(200, {"version": "1.1", "build": "three"}),
        })
        cases = list(_suite(fixtures_dir / "sanity.yml", bad).iter_cases())
        with pytest.raises(AssertionError, match="^Validation failed:\n#/build: 'three' is not of type 'integer'$"):
            cases[1].run()

    def test_server_down_is_a_failed_response(self, fixtures_dir, fake_session):
        def refuse(*args, **kwargs):
            raise requests.ConnectionError("Connection refused")

        session = fake_session({})
        session.request = refuse
        assert len(_run(_suite(fixtures_dir / "sanity.yml", session).iter_cases())) == 2


def _security_routes():
    def post(req, q):
        if req.headers.get("Authorization") != "Basic YmFzaWNVc2VybmFtZTpiYXNpY1Bhc3N3b3Jk":
            return make_response(401, "Unauthorized")
        return make_response(200, {"auth_token": "token_1"}, {"auth": "header"})

    def put(req, q):
        if req.headers.get("Authorization") != "Basic header":
            return make_response(401, "Unauthorized")
        if req.headers.get("AuthToken") != "Bearer token_1":
            return make_response(401, "Unauthorized")
        return make_response(200, {"auth_token": "token_2"})

    def delete(req, q):
        if req.headers.get("AuthToken") != "Bearer token_2":
            return make_response(401, "Unauthorized")
        return make_response(200)

    return {
        ("POST", "/api/auth_token"): post,
        ("PUT", "/api/auth_token"): put,
        ("DELETE", "/api/auth_token"): delete,
    }


class TestSecurityChain:
    def test_tokens_flow_through_later_examples(self, fixtures_dir, fake_session):
        session = fake_session(_security_routes())
        root = _suite(fixtures_dir / "security.yml", session)
        assert [c.name for c in root.iter_cases()] == [
            "200: should issue a token",
            "200: should refresh the token",
            "200: should revoke the token",
            "401: should reject a foreign token",
        ]
        assert _run(root.iter_cases()) == []
        assert session.sent[-1].headers["AuthToken"] == "Bearer foreign"

    def test_order_matters(self, fixtures_dir, fake_session):
        session = fake_session(_security_routes())
        cases = list(_suite(fixtures_dir / "security.yml", session).iter_cases())
        post, put = cases[0], cases[1]
        # consuming the token before it is minted must fail
        assert _run([put, post]) == ["200: should refresh the token"]

    def test_local_auth_override_does_not_leak(self, fixtures_dir, fake_session):
        session = fake_session(_security_routes())
        cases = list(_suite(fixtures_dir / "security.yml", session).iter_cases())
        assert _run(cases) == []
        # the revoke example still sees the chained token after the foreign one was used
        assert _run([cases[2]]) == []

    def test_header_auth_mode_cannot_do_password_credentials(self, fixtures_dir, fake_session):
        session = fake_session(_security_routes())
        cases = list(_suite(fixtures_dir / "security.yml", session, auth_mode="header").iter_cases())
        # header mode writes the username/password mapping verbatim instead of encoding it
        assert "200: should issue a token" in _run(cases)


class TestParameterChain:
    def test_parameters_flow_and_layering(self, fixtures_dir, fake_session):
        def user(req, q):
            return make_response(200, {"username": "usernameFromGet"})

        def get_user(req, q):
            if not req.url.endswith("/usernameFromGet"):
                return make_response(500, "Internal app error")
            return make_response(200)

        def delete_user(req, q):
            return make_response(200)

        routes = {
            ("GET", "/api/user"): user,
            ("GET", "/api/user/usernameFromGet"): get_user,
            ("DELETE", "/api/user/usernameInMethod"): delete_user,
            ("DELETE", "/api/user/usernameInExample"): delete_user,
        }
        session = fake_session(routes)
        root = _suite(fixtures_dir / "parameters.yml", session)

        assert _run(root.iter_cases()) == []
        assert [r.url for r in session.sent] == [
            BASE + "/user",
            BASE + "/user/usernameFromGet",
            BASE + "/user/usernameInMethod",
            BASE + "/user/usernameInExample",
        ]

    def test_without_provider_path_stays_templated(self, fixtures_dir, fake_session):
        session = fake_session({})
        cases = list(_suite(fixtures_dir / "parameters.yml", session).iter_cases())
        _run([cases[1]])
        assert session.sent[0].url == BASE + "/user/%7Busername%7D"
