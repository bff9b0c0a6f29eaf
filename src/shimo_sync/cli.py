import argparse
import sys
import traceback
from typing import List, Optional

from shimo_sync.config import ConfigStore, save_cookie
from shimo_sync.constants import DEFAULT_CONFIG_FILE
from shimo_sync.converter import PandocConverter
from shimo_sync.core.watcher import ConfigWatcher
from shimo_sync.errors import ConfigError, SyncError
from shimo_sync.logger import LogLevel, logger
from shimo_sync.models import read_items_from_file, save_items_to_file
from shimo_sync.shimo_client import ShimoClient
from shimo_sync.sync import LocalFileIndex, SyncEngine


def _load_store(config_path: str, overrides=None) -> Optional[ConfigStore]:
    try:
        return ConfigStore(config_path, overrides)
    except ConfigError as e:
        logger.error(f"加载配置文件出错：{e}")
        return None


def run_sync(store: ConfigStore, watch: bool = True) -> int:
    """Build the index, start the config watcher and run one sync pass.

    Returns:
        Process exit code
    """
    config = store.get()
    logger.info(f"配置：{config.masked()}", icon="⚙️ ")
    if not config.cookie:
        logger.warning("未配置 Cookie，请求很可能会被拒绝。")

    converter = PandocConverter()
    if not converter.is_available():
        logger.warning("未找到 pandoc，文档转换将失败。")

    client = ShimoClient(store.get)
    watcher = ConfigWatcher(store, on_reload=client.refresh_headers)
    if watch:
        watcher.start()

    index = LocalFileIndex(config.path)
    engine = SyncEngine(client, store.get, index, converter=converter)

    exit_code = 0
    try:
        engine.run()
    except (SyncError, OSError) as e:
        logger.error(f"同步文件出错：{e}")
        if logger.level == LogLevel.DEBUG:
            traceback.print_exc()
        exit_code = 1
    finally:
        watcher.stop(timeout=1)

    logger.summary_table("📊 同步汇总", {
        "✅ 已同步": engine.stats["synced"],
        "⏭️ 跳过（已是最新）": engine.stats["skipped"],
        "⏭️ 跳过（不支持的类型）": engine.stats["unsupported"],
        "📂 文件夹": engine.stats["folders"],
        "❌ 失败": engine.stats["failed"],
    })
    return exit_code


def list_main(argv: List[str]) -> int:
    """CLI entry point for dumping a folder listing."""
    parser = argparse.ArgumentParser(
        prog="shimosync list",
        description="导出石墨文件夹列表到 JSON，或查看已导出的列表",
    )
    parser.add_argument("folder", nargs="?", default=None, help="文件夹 ID (默认使用配置中的 Folder)")
    parser.add_argument("-o", "--output", help="输出 JSON 文件路径")
    parser.add_argument("--input", help="读取已导出的 JSON 文件而不请求接口")
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="配置文件路径")
    args = parser.parse_args(argv)

    try:
        if args.input:
            items = read_items_from_file(args.input)
        else:
            store = _load_store(args.config)
            if store is None:
                return 1
            folder = store.get().folder if args.folder is None else args.folder
            items = ShimoClient(store.get).list_files(folder)
    except (SyncError, OSError, ValueError) as e:
        logger.error(f"获取文件列表出错：{e}")
        return 1

    for item in items:
        icon = "📂" if item.is_folder else "📄"
        logger.info(f"{item.name}  [{item.type}]  {item.guid}  {item.updated_at}", icon=icon)

    if args.output:
        try:
            save_items_to_file(items, args.output)
        except OSError as e:
            logger.error(f"写入文件 {args.output} 失败：{e}")
            return 1
        logger.success(f"已将文件列表保存到 {args.output}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    # Route to list subcommand if first arg is 'list'
    if argv and argv[0] == "list":
        return list_main(argv[1:])

    parser = argparse.ArgumentParser(
        description="ShimoSync: 将石墨文档增量同步到本地 (Markdown + 评论)",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog="""
示例:
  1. 使用配置文件同步 (默认读取 config.json):
     shimosync

  2. 覆盖配置中的文件夹、本地路径与上次同步时间:
     shimosync --folder <folder_id> --path ./backup --since 1700000000

  3. 将 Cookie 保存到系统钥匙串:
     shimosync --set-cookie "shimo_sid=..."

  4. 导出文件夹列表:
     shimosync list <folder_id> -o items.json
"""
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="配置文件路径 (默认: config.json)")
    parser.add_argument("--folder", help="覆盖配置中的远端文件夹 ID")
    parser.add_argument("--path", help="覆盖配置中的本地根目录")
    parser.add_argument("--since", type=int, help="覆盖配置中的上次同步时间 (Unix 秒)")
    parser.add_argument("--no-watch", action="store_true", help="不监听配置文件变化")
    parser.add_argument("--set-cookie", metavar="COOKIE", help="保存 Cookie 到系统钥匙串后退出")
    parser.add_argument("--debug", action="store_true", help="输出调试日志")
    args = parser.parse_args(argv)

    if args.debug:
        logger.set_level(LogLevel.DEBUG)

    if args.set_cookie:
        if save_cookie(args.set_cookie):
            logger.success("Cookie 已保存到钥匙串")
            return 0
        return 1

    overrides = {"Folder": args.folder, "Path": args.path, "Lasttime": args.since}
    store = _load_store(args.config, overrides)
    if store is None:
        return 1

    try:
        return run_sync(store, watch=not args.no_watch)
    except KeyboardInterrupt:
        logger.info("\n操作取消")
        return 130


if __name__ == "__main__":
    sys.exit(main())
