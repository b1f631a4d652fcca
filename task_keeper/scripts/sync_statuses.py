#!/usr/bin/env python3
"""CLI entrypoint for syncing checkbox statuses with their tags."""
from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from task_keeper.status_sync import scheduler, settings, statuses, store
from task_keeper.status_sync.keeper import ScanStatistics, StatusKeeper

DEFAULT_SETTINGS_NAME = "settings.json"

logger = logging.getLogger("task_keeper.status_sync.cli")


class KeeperPaths:
    def __init__(self, root: Path, config: Path | None = None) -> None:
        self.root = root
        default_config = root / store.SETTINGS_DIRNAME / DEFAULT_SETTINGS_NAME
        self.settings_path = (config or default_config).resolve()


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def resolve_root(path: str | None) -> Path:
    resolved = Path(path).expanduser().resolve() if path else Path.cwd()
    if not resolved.is_dir():
        raise SystemExit(f"Vault directory not found: {resolved}")
    return resolved


def build_keeper(args: argparse.Namespace) -> StatusKeeper:
    root = resolve_root(args.root)
    config = Path(args.config).expanduser() if args.config else None
    paths = KeeperPaths(root, config)
    status_keeper = StatusKeeper(
        store.FilesystemDocumentStore(root),
        settings.JsonSettingsStore(paths.settings_path),
    )
    status_keeper.load_settings()
    return status_keeper


def print_progress(percentage: int, current: int, total: int) -> None:
    sys.stdout.write(f"\rScanning: {current} / {total} files ({percentage}%)")
    if current >= total:
        sys.stdout.write("\n")
    sys.stdout.flush()


def print_statistics(stats: ScanStatistics) -> None:
    print("Scan complete")
    print(f"  Files scanned: {stats.files_scanned}")
    print(f"  Files updated: {stats.files_updated}")
    print(f"  Tasks updated: {stats.tasks_updated}")
    for document_id, message in stats.errors:
        print(f"  Error: {document_id}: {message}")


def run_scan(status_keeper: StatusKeeper, quiet: bool = False) -> ScanStatistics:
    stats = status_keeper.scan_corpus(None if quiet else print_progress)
    print_statistics(stats)
    return stats


def command_scan(args: argparse.Namespace) -> None:
    status_keeper = build_keeper(args)
    stats = run_scan(status_keeper, quiet=args.quiet)
    if stats.errors:
        raise SystemExit(1)


def command_check(args: argparse.Namespace) -> None:
    status_keeper = build_keeper(args)
    rows: list[tuple[str, str, int]] = []
    for document_id in status_keeper.store.list_all():
        try:
            outcome = status_keeper.preview_document(document_id)
        except store.DocumentIOError as exc:
            logger.error("%s", exc)
            rows.append((document_id, "error", 0))
            continue
        if outcome.skipped_reason == "oversize":
            rows.append((document_id, "oversize", 0))
        elif outcome.changed:
            rows.append((document_id, "pending", outcome.changed))
            if args.verbose:
                for change in outcome.changes:
                    print(f"{document_id}:{change.index + 1}: {change.new_line}")
    print_check_table(rows)


def print_check_table(rows: list[tuple[str, str, int]]) -> None:
    if not rows:
        print("All task statuses match their tags.")
        return
    print("File".ljust(70), "Status".ljust(10), "Tasks")
    print("-" * 90)
    for document_id, status, count in rows:
        print(document_id.ljust(70), status.ljust(10), str(count))


def command_watch(args: argparse.Namespace) -> None:
    from task_keeper.status_sync.watcher import watch_vault

    status_keeper = build_keeper(args)
    if args.initial_scan:
        run_scan(status_keeper, quiet=True)
    change_scheduler = scheduler.ChangeScheduler(status_keeper.process_document)
    observer = watch_vault(status_keeper.store, change_scheduler)
    try:
        while observer.is_alive():
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Stopping watcher")
    finally:
        change_scheduler.shutdown()
        observer.stop()
        observer.join()


def command_statuses(args: argparse.Namespace) -> None:
    status_keeper = build_keeper(args)
    current = status_keeper.settings
    print(f"Priority rule: {current.priority_rule}")
    print()
    codes = [definition.code for definition in statuses.STATUS_DEFINITIONS]
    codes.extend(code for code in current.status_to_tags if code not in statuses.STATUS_BY_CODE)
    for code in codes:
        definition = statuses.STATUS_BY_CODE.get(code)
        description = definition.description if definition else ""
        tags = ", ".join(current.status_to_tags.get(code, []))
        protected = " (protected)" if code in statuses.PROTECTED_STATUSES else ""
        print(f"{statuses.describe(code).ljust(22)} {tags or '-'}{protected}")
        if description and args.verbose:
            print(f"{'':22} {description}")


def command_set_rule(args: argparse.Namespace) -> None:
    status_keeper = build_keeper(args)
    if status_keeper.settings.priority_rule == args.rule:
        logger.info("Priority rule already %s", args.rule)
        return
    status_keeper.set_priority_rule(args.rule)
    logger.info("Priority rule set to %s", args.rule)
    if args.no_scan:
        return
    run_scan(status_keeper, quiet=args.quiet)


def command_set_tags(args: argparse.Namespace) -> None:
    status_keeper = build_keeper(args)
    if not statuses.is_status_code(args.status):
        raise SystemExit(f"Status must be a single character: {args.status!r}")
    truncated = status_keeper.set_status_tags(args.status, args.tags)
    tags = status_keeper.settings.status_to_tags.get(args.status, [])
    logger.info("%s: %s", statuses.describe(args.status), ", ".join(tags) or "(no tags)")
    if truncated:
        print(
            f"Only the first {statuses.MAX_TAGS_PER_STATUS} tags were kept.",
            file=sys.stderr,
        )


def build_parser() -> argparse.ArgumentParser:
    parser_obj = argparse.ArgumentParser(description="Keep checkbox statuses in sync with tags")
    parser_obj.add_argument("--root", help="Vault directory (defaults to the current directory)")
    parser_obj.add_argument(
        "--config",
        help=f"Settings file (defaults to <root>/{store.SETTINGS_DIRNAME}/{DEFAULT_SETTINGS_NAME})",
    )
    parser_obj.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser_obj.add_subparsers(dest="command")

    scan_parser = subparsers.add_parser("scan", help="Update every document in the vault")
    scan_parser.add_argument("--quiet", action="store_true", help="Hide progress output")
    scan_parser.set_defaults(func=command_scan)

    check_parser = subparsers.add_parser("check", help="Dry run: list pending updates")
    check_parser.set_defaults(func=command_check)

    watch_parser = subparsers.add_parser("watch", help="Update documents as they change")
    watch_parser.add_argument(
        "--initial-scan", action="store_true", help="Scan the whole vault before watching"
    )
    watch_parser.set_defaults(func=command_watch)

    statuses_parser = subparsers.add_parser("statuses", help="Show statuses and their tags")
    statuses_parser.set_defaults(func=command_statuses)

    rule_parser = subparsers.add_parser(
        "set-rule", help="Choose whether the leftmost or rightmost tag wins"
    )
    rule_parser.add_argument("rule", choices=statuses.PRIORITY_RULES)
    rule_parser.add_argument(
        "--no-scan", action="store_true", help="Do not rescan the vault afterwards"
    )
    rule_parser.add_argument("--quiet", action="store_true", help="Hide progress output")
    rule_parser.set_defaults(func=command_set_rule)

    tags_parser = subparsers.add_parser("set-tags", help="Replace the tags of one status")
    tags_parser.add_argument("status", help="Status character, e.g. '!'")
    tags_parser.add_argument("tags", help="Comma-separated tags, e.g. 'star, redstar'")
    tags_parser.set_defaults(func=command_set_tags)

    return parser_obj


def main(argv: list[str] | None = None) -> None:
    parser_obj = build_parser()
    args = parser_obj.parse_args(argv)
    if not getattr(args, "command", None):
        parser_obj.print_help()
        return
    configure_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
