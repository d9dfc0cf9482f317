"""
Smoke tests for the command-line pipeline.
"""

import os

import config
import main


def test_demo_pipeline_writes_outputs(tmp_path, capsys):
    out_dir = str(tmp_path / "out")
    code = main.main([
        "--demo", "--parts", "2", "3", "4", "5", "6", "--plots",
        "--output-dir", out_dir, "--reference-date", "2026-10-18",
    ])

    assert code == 0
    assert os.path.exists(os.path.join(out_dir, config.REPORT_FILE))
    assert os.path.exists(os.path.join(out_dir, config.RISK_EXPORT_FILE))
    for chart in ("mrr_forecast.png", "net_new_mrr.png", "risk_levels.png"):
        assert os.path.exists(os.path.join(out_dir, "charts", chart))

    out = capsys.readouterr().out
    assert "SUMMARY" in out
    assert "Pipeline complete." in out


def test_csv_ledger_part1_audit(tmp_path, capsys):
    (tmp_path / config.TRANSACTIONS_FILE).write_text(
        "customer_id,amount,paid,status,created_at\ncus_1,5,true,paid,2026-09-03\n")
    (tmp_path / config.SUBSCRIPTIONS_FILE).write_text("user_id,plan,status\ncus_1,Pro,active\n")

    code = main.main(["--parts", "1", "2", "--data-dir", str(tmp_path),
                      "--reference-date", "2026-10-18"])

    assert code == 0
    out = capsys.readouterr().out
    assert "LEDGER AUDIT" in out
    assert "2026-09" in out


def test_missing_ledger_exits_with_error(tmp_path, capsys):
    code = main.main(["--parts", "2", "--data-dir", str(tmp_path / "nowhere")])

    assert code == 1
    assert "Missing file" in capsys.readouterr().err


def test_non_admin_role_rejected(capsys):
    code = main.main(["--demo", "--parts", "2", "--role", "viewer",
                      "--reference-date", "2026-10-18"])

    assert code == 1
    assert "requires one of" in capsys.readouterr().err


def test_non_admin_role_rejected_before_ledger_audit(tmp_path, capsys):
    (tmp_path / config.TRANSACTIONS_FILE).write_text(
        "customer_id,amount,paid,status,created_at\ncus_1,5,true,paid,2026-09-03\n")
    (tmp_path / config.SUBSCRIPTIONS_FILE).write_text("user_id,plan,status\ncus_1,Pro,active\n")

    code = main.main(["--parts", "1", "--role", "viewer", "--data-dir", str(tmp_path)])

    assert code == 1
    captured = capsys.readouterr()
    assert "LEDGER AUDIT" not in captured.out
    assert "requires one of" in captured.err
