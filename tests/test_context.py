"""Tests for resolution context assembly."""

from pathlib import Path

import pytest

from orchestrix.context import (
    EnvProvider,
    FileReader,
    ResolutionContext,
    build_context,
    parse_hook_input,
)

GATEWAY_CWD = "/srv/users/9f3a/blueprints/abc/repo"


class TestEnvProvider:
    def test_get_strips_values(self):
        env = EnvProvider({'AGENT_ID': ' dev \n'})
        assert env.get('AGENT_ID') == 'dev'

    def test_empty_and_missing_are_none(self):
        env = EnvProvider({'AGENT_ID': '   '})
        assert env.get('AGENT_ID') is None
        assert env.get('ORCHESTRIX_SESSION') is None

    def test_defaults_to_process_environment(self, monkeypatch):
        monkeypatch.setenv('ORCHESTRIX_SESSION', 'orchestrix-demo')
        assert EnvProvider().get('ORCHESTRIX_SESSION') == 'orchestrix-demo'


class TestFileReader:
    def test_reads_and_strips_newlines(self, tmp_path):
        path = tmp_path / "hint.txt"
        path.write_text("dev\r\n")
        assert FileReader().read_line(path) == 'dev'

    def test_missing_file(self, tmp_path):
        assert FileReader().read_line(tmp_path / "nope.txt") is None

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_text("\n")
        assert FileReader().read_line(path) is None

    def test_directory_is_not_a_file(self, tmp_path):
        assert FileReader().read_line(tmp_path) is None


class TestParseHookInput:
    def test_object(self):
        assert parse_hook_input('{"transcript_path": "/t.jsonl"}') == {"transcript_path": "/t.jsonl"}

    @pytest.mark.parametrize("raw", ["", "   ", "not json", "[1, 2]", '"text"'])
    def test_unusable_input_is_empty(self, raw):
        assert parse_hook_input(raw) == {}


class TestBuildContext:
    def test_collects_every_source(self, project_dir, make_backend):
        (project_dir / '.orchestrix-core' / 'blueprint-id.txt').write_text("abc\n")
        backend = make_backend(sessions={'u9f3a-bp-abc': ['dev'], 'other': []})

        ctx = build_context(
            project_dir,
            {'transcript_path': '/t/session.jsonl'},
            backend=backend,
            env=EnvProvider({'ORCHESTRIX_SESSION': 'u9f3a-bp-abc', 'AGENT_ID': 'dev'}),
            cwd=GATEWAY_CWD,
        )

        assert ctx.project_root == project_dir
        assert ctx.caller_cwd == GATEWAY_CWD
        assert ctx.user_token == '9f3a'
        assert ctx.env_session == 'u9f3a-bp-abc'
        assert ctx.env_agent == 'dev'
        assert ctx.persisted_blueprint_id == 'abc'
        assert ctx.transcript_path == '/t/session.jsonl'
        assert ctx.live_sessions == ['u9f3a-bp-abc', 'other']

    def test_non_gateway_cwd_is_replaced_by_project_root(self, project_dir, make_backend):
        ctx = build_context(project_dir, {}, backend=make_backend(), env=EnvProvider({}), cwd="/somewhere/else")

        assert ctx.caller_cwd == str(project_dir)
        assert ctx.user_token is None

    def test_missing_optional_sources(self, project_dir):
        ctx = build_context(project_dir, None, backend=None, env=EnvProvider({}), cwd=GATEWAY_CWD)

        assert ctx.env_session is None
        assert ctx.env_agent is None
        assert ctx.persisted_blueprint_id is None
        assert ctx.transcript_path is None
        assert ctx.live_sessions == []

    def test_ignores_non_string_transcript_path(self, project_dir):
        ctx = build_context(project_dir, {'transcript_path': 42}, env=EnvProvider({}), cwd=GATEWAY_CWD)
        assert ctx.transcript_path is None

    def test_live_sessions_are_a_snapshot(self, project_dir, make_backend):
        backend = make_backend(sessions={'u1-bp-a': []})
        ctx = build_context(project_dir, {}, backend=backend, env=EnvProvider({}), cwd=GATEWAY_CWD)

        backend.sessions['u1-bp-b'] = []
        assert ctx.live_sessions == ['u1-bp-a']


def test_to_log_dict_counts_sessions():
    ctx = ResolutionContext(project_root=Path('/p'), caller_cwd='/p', live_sessions=['a', 'b'])
    data = ctx.to_log_dict()

    assert data['project_root'] == '/p'
    assert data['live_sessions'] == 2
