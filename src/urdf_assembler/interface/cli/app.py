from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates the CLI lifecycle: logging bootstrap, configuration merging
(defaults, persistent storage and CLI overrides), routing to the requested
action (load, list samples, generate manifest) and result rendering.
"""

import json
import os
import sys
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from urdf_assembler.core.pipeline.engine import ModelLoader
from urdf_assembler.core.pipeline.validator import validate_config
from urdf_assembler.core.services.manifest import SampleMode, discover_samples, generate_manifest
from urdf_assembler.domain.config import get_default_config, load_app_state, load_config, save_config
from urdf_assembler.domain.pipeline_models import LoadResult
from urdf_assembler.infra.fs import normalize_path, safe_mkdir
from urdf_assembler.infra.logging import LoggingConfig, configure_logging, get_default_log_path, get_logger
from urdf_assembler.interface.cli import args as cli_args

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_BAD_INPUT = 2
EXIT_INTERRUPTED = 130

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the main CLI application workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code (0 success, 1 failed load, 2 bad input, 130 interrupted).
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8")

    # 1. Argument parsing phase
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    # 2. Logging bootstrap (stderr, plus the persistent log when enabled in app settings)
    app_settings = {} if args.use_defaults else load_app_state().get("app_settings", {})
    configure_logging(LoggingConfig.from_app_settings(app_settings, get_default_log_path(), debug=args.debug))

    logger.debug("CLI execution initiated. Resolving configuration hierarchy...")

    # 3. Configuration: base, overrides, validation
    base_conf = get_default_config() if args.use_defaults else load_config()
    raw_conf = _merge_config(base_conf, cli_args.args_to_overrides(args))
    clean_conf, warnings = validate_config(raw_conf, strict=False)
    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    if args.save_config:
        save_config(clean_conf)
        logger.info("Effective configuration stored for later runs.")

    if args.dump_config:
        print(json.dumps(clean_conf, ensure_ascii=False, indent=2))
        return EXIT_OK

    # 4. Action routing
    try:
        if args.manifest_dir:
            return _run_generate_manifest(args.manifest_dir, clean_conf)
        if args.list_samples:
            return _run_list_samples(clean_conf, json_output=args.json_output)
        if args.sample_path or args.input_path:
            return _run_load(args, clean_conf)
    except KeyboardInterrupt:
        msg = "Operation interrupted by user."
        logger.warning(msg)
        print(msg, file=sys.stderr)
        return EXIT_INTERRUPTED

    parser.print_usage(sys.stderr)
    print("ERROR: one of -i/--input, --sample, --list-samples or --generate-manifest is required.",
          file=sys.stderr)
    return EXIT_BAD_INPUT

# -----------------------------------------------------------------------------
# ACTIONS
# -----------------------------------------------------------------------------

def _run_load(args: Any, cfg: Dict[str, Any]) -> int:
    input_path = ""
    if args.input_path:
        input_path = normalize_path(args.input_path, fallback=".")
        if not os.path.exists(input_path):
            msg = f"Input path does not exist: {input_path}"
            logger.error(msg)
            print(f"ERROR: {msg}", file=sys.stderr)
            return EXIT_BAD_INPUT

    loader = ModelLoader(cfg)
    try:
        if args.sample_path:
            logger.info(f"Loading hosted sample: {args.sample_path}")
            result = loader.load_from_manifest_entry(args.sample_path)
        elif os.path.isdir(input_path):
            logger.info(f"Loading model folder: {input_path}")
            result = loader.load_from_directory(input_path)
        else:
            logger.info(f"Loading model file: {input_path}")
            result = loader.load_from_single_file(input_path)
    except Exception as e:
        msg = f"Load failed unexpectedly: {e}"
        logger.critical(msg, exc_info=True)
        print(f"ERROR: {msg}", file=sys.stderr)
        return EXIT_FAILED
    finally:
        loader.close()

    if result.ok and args.output_path:
        output_path = normalize_path(args.output_path, fallback="assembled.urdf")
        created, err = safe_mkdir(os.path.dirname(output_path))
        if not created:
            print(f"ERROR: Cannot create output directory: {err}", file=sys.stderr)
            return EXIT_FAILED
        try:
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(result.urdf_text)
            logger.info(f"Assembled description written to {output_path}")
        except OSError as e:
            logger.error(f"Failed to write output file: {e}")
            print(f"ERROR: Failed to write output file: {e}", file=sys.stderr)
            return EXIT_FAILED

    if args.json_output:
        print(json.dumps(asdict(result), ensure_ascii=False, indent=2))
    else:
        _print_human_summary(result, args.output_path)

    return EXIT_OK if result.ok else EXIT_FAILED


def _run_list_samples(cfg: Dict[str, Any], json_output: bool) -> int:
    base_url = cfg["samples_base_url"] or cfg["static_base_url"]
    catalog = discover_samples(base_url, cfg)

    if json_output:
        print(json.dumps(
            {"mode": catalog.mode.value, "base_url": catalog.base_url, "files": catalog.files},
            ensure_ascii=False, indent=2,
        ))
    elif catalog.mode is SampleMode.NONE:
        print(f"No samples found under {base_url}", file=sys.stderr)
    else:
        print(f"Samples ({catalog.mode.value} mode, {len(catalog.files)}):")
        for path in catalog.files:
            print(f"  - {path}")

    return EXIT_OK if catalog.mode is not SampleMode.NONE else EXIT_FAILED


def _run_generate_manifest(public_dir: str, cfg: Dict[str, Any]) -> int:
    if not os.path.isdir(public_dir):
        msg = f"Samples directory does not exist: {public_dir}"
        logger.error(msg)
        print(f"ERROR: {msg}", file=sys.stderr)
        return EXIT_BAD_INPUT

    try:
        entries = generate_manifest(
            public_dir,
            manifest_filename=cfg["manifest_filename"],
            max_workers=cfg["max_workers"],
        )
    except OSError as e:
        logger.error(f"Failed to write manifest: {e}")
        print(f"ERROR: Failed to write manifest: {e}", file=sys.stderr)
        return EXIT_FAILED

    print(f"Manifest created with {len(entries)} sample(s).")
    return EXIT_OK

# -----------------------------------------------------------------------------
# CONFIGURATION MERGING
# -----------------------------------------------------------------------------

def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow-merge known, non-None override values into the base configuration.

    Args:
        base: The primary configuration dictionary.
        overrides: New values to inject.

    Returns:
        Dict[str, Any]: The merged configuration state.
    """
    out = dict(base)
    keys_to_merge = [
        "samples_base_url", "static_base_url", "asset_api_prefix", "static_mode",
        "urdf_sibling_heuristic", "probe_remote_assets",
    ]
    for k in keys_to_merge:
        if k in overrides and overrides[k] is not None:
            out[k] = overrides[k]
    return out

# -----------------------------------------------------------------------------
# VIEW RENDERING (HUMAN READABLE)
# -----------------------------------------------------------------------------

def _print_human_summary(result: LoadResult, output_path: Optional[str] = None) -> None:
    """
    Print a terminal report of a load result.

    Args:
        result: The load result to render.
        output_path: Where the assembled description was written, if anywhere.
    """
    if not result.ok:
        error = result.error
        print(f"ERROR [{error.kind.value}]: {error.message}" if error else "ERROR: load failed",
              file=sys.stderr)
        return

    print(f"Model assembled ({result.status.value}).")
    print(f"Entry document: {result.entry_path}")

    summary = result.summary
    stats_keys = {
        "files_indexed": "Files indexed",
        "links": "Links",
        "joints": "Joints",
        "meshes": "Meshes loaded",
        "placeholders": "Mesh placeholders",
    }
    for key, label in stats_keys.items():
        if key in summary:
            print(f"{label}: {summary[key]}")

    if output_path:
        print(f"Output: {output_path}")

    if result.warnings:
        print(f"\nWarnings ({len(result.warnings)}):")
        for w in result.warnings:
            print(f"  - [{w.kind.value}] {w.message}")

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
