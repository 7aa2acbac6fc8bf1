# tests/mydbd_test/test_cli.py
import datetime
import decimal
import json
import logging

import pytest

from mydbd.__main__ import json_serializer, main, parse_args


@pytest.fixture
def cli_env(monkeypatch, tmp_path, fake_server):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv('MYDBD_CONFIG_PATH', raising=False)
    for name in ('MYSQL_HOST', 'MYSQL_PORT', 'MYSQL_USER', 'MYSQL_PASSWORD', 'MYSQL_DATABASE', 'MYSQL_SOCKET'):
        monkeypatch.delenv(name, raising=False)
    yield fake_server
    logging.getLogger().setLevel(logging.WARNING)


def test_parse_args():
    args = parse_args(['SELECT ?', '-p', '1', '--param', 'x', '--readonly', '--assoc'])
    assert args.query == 'SELECT ?'
    assert args.param == ['1', 'x']
    assert args.readonly and args.assoc
    assert args.log_level == 'INFO'


def test_json_serializer():
    assert json_serializer(datetime.date(2024, 5, 1)) == '2024-05-01'
    assert json_serializer(decimal.Decimal('9.99')) == '9.99'
    assert json_serializer(b'\x01') == '01'
    with pytest.raises(TypeError):
        json_serializer(object())


def test_prints_rows(cli_env, capsys):
    cli_env.on(r'FROM users', columns=('id', 'name'), rows=[(1, 'alice'), (2, 'bob')])
    main(['SELECT id, name FROM users', '--host', 'cli.local', '--assoc'])

    lines = capsys.readouterr().out.splitlines()
    assert [json.loads(line) for line in lines] == [{'id': 1, 'name': 'alice'}, {'id': 2, 'name': 'bob'}]
    assert cli_env.connect_args[0]['host'] == 'cli.local'
    assert not cli_env.connections[0].alive


def test_binds_params(cli_env, capsys):
    cli_env.on(r'FROM users', columns=('name',), rows=lambda params: [(params[0],)])
    main(['SELECT name FROM users WHERE name = ?', '-p', 'carol'])
    assert json.loads(capsys.readouterr().out) == ['carol']


def test_readonly_violation_exits(cli_env):
    with pytest.raises(SystemExit) as exc_info:
        main(['DELETE FROM users', '--readonly'])
    assert exc_info.value.code == 1
    assert cli_env.queries() == []


def test_connect_failure_exits(cli_env, mysql_error):
    cli_env.connect_error = mysql_error(2003, "Can't connect to MySQL server")
    with pytest.raises(SystemExit) as exc_info:
        main(['SELECT 1'])
    assert exc_info.value.code == 1


def test_invalid_log_level(cli_env):
    with pytest.raises(ValueError):
        main(['SELECT 1', '--log-level', 'LOUD'])
