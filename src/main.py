#!/usr/bin/env python3
"""
GPUSwitch - Main Entry Point
"""

import argparse
import os
import shutil
import sys
from pathlib import Path

import config
from backend.errors import GPUSwitchError, PrivilegeError
from backend.installer import Installer
from backend.status_reporter import build_report
from backend.switcher import HostSwitcher, PassthroughSwitcher
from models.switch_model import load_config
from utils.logger import logger, setup_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gpuswitch",
        description=config.APP_DESCRIPTION
    )
    parser.add_argument(
        "--sleep", type=float, default=0, metavar="SECONDS",
        help="delay before and after switching to the host driver"
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="print raw nvidia-smi readings and sysfs writes"
    )
    parser.add_argument(
        "--config", type=Path, default=config.CONFIG_FILE, metavar="PATH",
        help=f"configuration file (default: {config.CONFIG_FILE})"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {config.APP_VERSION}")

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True
    commands.add_parser("nvidia", help="bind the GPU to its host drivers and wait for idle")
    commands.add_parser("vfio", help="bind the GPU to vfio-pci for a virtual machine")
    commands.add_parser("list", help="show driver bindings and processes using the GPU")

    install = commands.add_parser("install", help="record host drivers and enable the boot unit")
    install.add_argument("bus_prefix", help="PCI bus prefix, e.g. 0000:01:00")
    install.add_argument("device_path", type=Path, help="GPU device node, e.g. /dev/nvidia1")

    return parser


def ensure_root(argv):
    """Re-exec through sudo unless already root"""
    if os.geteuid() == 0:
        return

    sudo = shutil.which("sudo")
    if not sudo:
        raise PrivilegeError("Root privileges are required and sudo is not available")

    logger.debug("Re-executing with sudo")
    os.execvp(sudo, [sudo, sys.executable, os.path.abspath(sys.argv[0]), *argv])


def run_command(args) -> int:
    if args.command == "install":
        Installer(config_path=args.config).install(args.bus_prefix, args.device_path)
        return 0

    # Read before HostSwitcher's pre-delay: a broken config fails without waiting out --sleep
    device_config = load_config(args.config)

    if args.command == "nvidia":
        HostSwitcher(device_config, delay=args.sleep).run()
    elif args.command == "vfio":
        PassthroughSwitcher(device_config).run()
    elif args.command == "list":
        build_report(device_config)
    return 0


def main(argv=None):
    """Main application entry point"""
    if argv is None:
        argv = sys.argv[1:]

    args = build_parser().parse_args(argv)
    setup_logger(debug=args.debug)

    try:
        ensure_root(argv)
        logger.debug(f"Starting {config.APP_NAME} v{config.APP_VERSION}: {args.command}")
        return run_command(args)
    except GPUSwitchError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
