"""
Command-line entry point.

Wires the settings, the ffmpeg/ffprobe wrappers and the Ollama clients
into a VideoCatalog, then runs the pipeline:

    add -> extract frames -> model stages -> rename -> export -> cleanup

Usage:
    aspargus clip1.mp4 clip2.mov -r "%Y-%M-%D %T" -j results.json
    aspargus -f ~/Videos -s VID_0100.mp4 -e VID_0199.mp4 --two-steps
    aspargus --list-models
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from .config.settings import AspargusSettings, SettingsError, default_settings_store
from .core.catalog.catalog import VideoCatalog
from .core.catalog.errors import ExportError, ModelClientError, ToolNotFoundError
from .core.catalog.summarizer import create_summary_strategy
from .infrastructure.files.export import export_to_json
from .infrastructure.files.listing import filter_files_in_dir
from .infrastructure.images.resizer import resize_images
from .infrastructure.ollama.client import create_ollama_client
from .infrastructure.video.frames import FrameExtractor
from .infrastructure.video.probe import MetadataProbe

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_FATAL = 2


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if verbose else logging.INFO,
    )
    # connection pool chatter drowns the progress lines in verbose mode
    logging.getLogger("urllib3").setLevel(logging.INFO)
    logging.getLogger("PIL").setLevel(logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aspargus",
        description="Describe, tag and rename a batch of videos with local vision models.",
    )
    parser.add_argument("videos", nargs="*", help="Video files to analyse")

    selection = parser.add_argument_group("folder selection")
    selection.add_argument("-f", "--folder", help="Analyse the files of this folder")
    selection.add_argument("-s", "--start", help="First file name to take in the folder")
    selection.add_argument("-e", "--end", help="Last file name to take in the folder")

    output = parser.add_argument_group("output")
    output.add_argument(
        "-r", "--rename",
        metavar="TEMPLATE",
        help="Rename files from a template: %%Y %%M %%D (date), %%T (title), "
             "%%K (keywords with -), %%J (keywords with , ), %%F (original name)",
    )
    output.add_argument("-j", "--json", metavar="PATH", help="Export the results to a JSON file")

    models = parser.add_argument_group("models (saved for the next runs)")
    models.add_argument("-c", "--cv-model", help="Computer vision model")
    models.add_argument("-t", "--text-model", help="Text model, used in two steps mode")
    models.add_argument("--cv-server", help="Computer vision server, e.g. http://localhost")
    models.add_argument("--cv-server-port", type=int, help="Computer vision server port")
    models.add_argument("--text-server", help="Text server, e.g. http://localhost")
    models.add_argument("--text-server-port", type=int, help="Text server port")
    models.add_argument(
        "--two-steps",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Tell the story with the vision model, then resume it with the text model",
    )

    parser.add_argument(
        "--list-models",
        action="store_true",
        help="List the models available on the configured servers and exit",
    )
    parser.add_argument(
        "--keep-thumbnails",
        action="store_true",
        help="Leave the extracted thumbnails in the temp folder",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def apply_overrides(settings: AspargusSettings, args: argparse.Namespace) -> AspargusSettings:
    """Settings with the command-line values on top. Flags left out change nothing."""
    return settings.with_overrides(
        computer_vision_model=args.cv_model,
        text_model=args.text_model,
        computer_vision_server=args.cv_server,
        computer_vision_server_port=args.cv_server_port,
        text_server=args.text_server,
        text_server_port=args.text_server_port,
        two_steps=args.two_steps,
    )


def select_videos(args: argparse.Namespace) -> Optional[list[str]]:
    """
    The files to analyse, from explicit paths or from a folder.

    Returns None when the arguments don't make sense together.
    """
    if (args.start or args.end) and not args.folder:
        logger.error("--start and --end can only be used with --folder")
        return None

    if args.videos:
        if args.folder:
            logger.warning("Video files were given, --folder is ignored")
        return list(args.videos)

    if args.folder:
        return filter_files_in_dir(args.folder, args.start, args.end)
    return []


def create_catalog(settings: AspargusSettings) -> VideoCatalog:
    """Wire the real collaborators into a catalog."""
    vision_client = create_ollama_client(
        settings.computer_vision_server, settings.computer_vision_server_port
    )
    text_client = create_ollama_client(settings.text_server, settings.text_server_port)
    strategy = create_summary_strategy(
        settings.two_steps,
        vision_client,
        settings.computer_vision_model,
        text_client,
        settings.text_model,
        resize_thumbnails=resize_images,
    )
    return VideoCatalog(
        settings=settings,
        probe=MetadataProbe(),
        extractor=FrameExtractor(settings.temp_folder),
        strategy=strategy,
    )


async def run_pipeline(
    catalog: VideoCatalog,
    paths: Sequence[str],
    rename_template: Optional[str] = None,
    json_path: Optional[str] = None,
    keep_thumbnails: bool = False,
) -> None:
    """
    Run every stage over ``paths``.

    Raises:
        ToolNotFoundError: ffmpeg or ffprobe is missing
    """
    catalog.add_videos(paths)
    try:
        await catalog.extract_frames()
        await catalog.run_models()

        if rename_template:
            await catalog.rename_videos(rename_template)

        if json_path:
            try:
                export_to_json(catalog.videos, json_path)
            except ExportError as e:
                logger.error(str(e))
    finally:
        if not keep_thumbnails:
            catalog.cleanup_thumbnails()


async def list_models(settings: AspargusSettings) -> None:
    servers = {
        (settings.computer_vision_server, settings.computer_vision_server_port),
        (settings.text_server, settings.text_server_port),
    }
    for server, port in sorted(servers):
        client = create_ollama_client(server, port)
        try:
            names = await client.list_models()
        except ModelClientError as e:
            logger.error(f"Couldn't list models on {client.base_url}: {e}")
            continue
        print(f"Models on {client.base_url}:")
        for name in names:
            print(f"  {name}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        store = default_settings_store()
        stored = store.load()
        settings = apply_overrides(stored, args)
        if settings != stored:
            store.save(settings)
            logger.info(f"Settings saved to {store.path}")
    except SettingsError as e:
        logger.error(str(e))
        return EXIT_ERROR
    except ValueError as e:
        # pydantic ValidationError, e.g. a port out of range
        logger.error(f"Invalid setting: {e}")
        return EXIT_ERROR

    if args.list_models:
        asyncio.run(list_models(settings))
        return EXIT_OK

    paths = select_videos(args)
    if paths is None:
        return EXIT_ERROR
    if not paths:
        logger.error("No videos to analyse")
        return EXIT_ERROR

    catalog = create_catalog(settings)
    try:
        asyncio.run(run_pipeline(
            catalog,
            paths,
            rename_template=args.rename,
            json_path=args.json,
            keep_thumbnails=args.keep_thumbnails,
        ))
    except ToolNotFoundError as e:
        logger.error(str(e))
        return EXIT_FATAL

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
