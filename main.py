# main.py
from pathlib import Path
import argparse

from macro_core.logging_setup import setup_logging
from macro_core.logging_context import log_context, new_corr_id
from macro_core.repos.macro_data_repo import MacroDataRepo
from macro_core.repos.settings_repo import SettingsRepo
from macro_core.app.session import MacroDataSession
from macro_core.app.services import CollectionsService, MacroEditService


def main():
    parser = argparse.ArgumentParser(description="列出宏数据文件中的集合、宏与序列")
    parser.add_argument("--data-dir", default="app_data", help="应用数据目录（含 data_json.json / settings.json）")
    args = parser.parse_args()

    app_data_dir = Path(args.data_dir)

    # 配置 + 日志
    settings = SettingsRepo(app_data_dir).load_or_create()
    log_rt = setup_logging(
        app_data_dir=app_data_dir,
        level=settings.logging.level,
        console=settings.logging.console,
    )

    try:
        with log_context(corr_id=new_corr_id(), action="startup"):
            repo = MacroDataRepo(app_data_dir)
            data = repo.load_or_create()

        session = MacroDataSession(
            data,
            persist=lambda cols: repo.persist(cols, backup=settings.io.backup_on_save),
            settings=settings,
        )
        collections = CollectionsService(session=session)
        editor = MacroEditService(collections=collections)

        for d in repo.last_diagnostics:
            print(f"[{d.level}] {d.path}: {d.message} {d.detail}".rstrip())

        for c in collections.collections:
            flag = "on " if c.active else "off"
            print(f"[{flag}] {c.icon} {c.name} ({len(c.macros)} macros)")
            for m in c.macros:
                editor.open_macro(c.name, m.name)
                mflag = "on " if m.active else "off"
                print(f"    [{mflag}] {m.name} <{m.macro_type}> trigger: {editor.trigger_label() or '-'}")
                for row in editor.rows():
                    label = row.display.label if row.display.label is not None else ""
                    edit = "*" if row.display.editable else " "
                    print(f"        {row.index:>3} {edit} {row.display.icon.value or '-':<7} {label}")
            editor.close()
    finally:
        log_rt.stop()


if __name__ == "__main__":
    main()
