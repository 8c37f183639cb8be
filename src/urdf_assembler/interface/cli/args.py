from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line interface schema and translates the parsed
namespace into configuration overrides understood by the validator.
"""

import argparse
from typing import Any, Dict

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the urdf-assembler CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="urdf-assembler",
        description=(
            "Assemble a robot description (URDF or xacro) from a file, a folder "
            "or a hosted sample into one parse-ready document."
        ),
    )

    # --- Input Selection ---
    source = p.add_mutually_exclusive_group()
    source.add_argument(
        "-i", "--input",
        dest="input_path",
        default=None,
        help="Description file or folder to load.",
    )
    source.add_argument(
        "--sample",
        dest="sample_path",
        default=None,
        help="Entry path of a hosted sample (relative to --base-url).",
    )
    source.add_argument(
        "--list-samples",
        action="store_true",
        help="List the samples offered under --base-url and exit.",
    )
    source.add_argument(
        "--generate-manifest",
        dest="manifest_dir",
        metavar="DIR",
        default=None,
        help="Write the static sample manifest for DIR and exit.",
    )
    p.add_argument(
        "--base-url",
        dest="samples_base_url",
        default=None,
        help="Root URL samples are hosted under.",
    )

    # --- Output ---
    p.add_argument(
        "-o", "--output",
        dest="output_path",
        default=None,
        help="Write the assembled description to this file.",
    )

    # --- Asset Addressing ---
    p.add_argument(
        "--static-base",
        dest="static_base_url",
        default=None,
        help="Base URL for unresolved assets in static hosting mode.",
    )
    p.add_argument(
        "--api-prefix",
        dest="asset_api_prefix",
        default=None,
        help="Serve unresolved assets from this API prefix (disables static mode).",
    )
    p.add_argument(
        "--no-urdf-heuristic",
        action="store_true",
        help="Resolve relative mesh paths strictly against the document directory.",
    )
    p.add_argument(
        "--no-probe",
        action="store_true",
        help="Skip the HEAD existence check before downloading remote meshes.",
    )

    # --- Configuration and Diagnostic Tools ---
    p.add_argument(
        "--use-defaults",
        action="store_true",
        help="Ignore the saved configuration and use built-in defaults.",
    )
    p.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the effective configuration as JSON and exit.",
    )
    p.add_argument(
        "--save-config",
        action="store_true",
        help="Store the effective configuration as the default for later runs.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )

    # --- Format Selection ---
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print the load result as JSON.",
    )

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into a configuration overrides dict.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Dict[str, Any]: Configuration overrides subset.
    """
    overrides: Dict[str, Any] = {}

    overrides["samples_base_url"] = args.samples_base_url
    overrides["static_base_url"] = args.static_base_url

    if args.asset_api_prefix:
        overrides["asset_api_prefix"] = args.asset_api_prefix
        overrides["static_mode"] = False

    if args.no_urdf_heuristic:
        overrides["urdf_sibling_heuristic"] = False
    if args.no_probe:
        overrides["probe_remote_assets"] = False

    return overrides
