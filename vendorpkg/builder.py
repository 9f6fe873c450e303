"""Build orchestration over a resolved dependency tree.

Packages are processed in post-order (see dependency_tree.flatten). For each
package the instruction list is chosen (a consumer-supplied outer build
replaces the package's self build entirely), `${PKG_*}` variables are
substituted, and the commands are either run with `sh -c` in the package's
source directory or written out as a shell script.
"""
import os
import re
import shlex
from types import MappingProxyType

from .cli_logger import logger
from .errors import BuildError
from .manifest import INSTALL_DIR, SRC_DIR, get_package_install_path, get_package_src_path, get_vendor_path
from .utils.command_executor import run_shell_command

SHELL = "sh"
VARIABLE_PREFIX = "PKG_"
VARIABLE_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def build_environment(pkg_home, package_name):
    """
    Variables available to the instructions of package_name.

    PKG_VENDOR_PATH, PKG_SRC_PATH and PKG_INSTALL_PATH are absolute;
    PKG_SRC_DIR and PKG_INSTALL_DIR are relative to the vendor root.
    """
    return MappingProxyType({
        "PKG_VENDOR_PATH": get_vendor_path(pkg_home),
        "PKG_NAME": package_name,
        "PKG_SRC_PATH": get_package_src_path(pkg_home, package_name),
        "PKG_INSTALL_PATH": get_package_install_path(pkg_home, package_name),
        "PKG_SRC_DIR": os.path.join(SRC_DIR, package_name),
        "PKG_INSTALL_DIR": os.path.join(INSTALL_DIR, package_name),
    })


def substitute(template, variables, package=None):
    """
    Replace `${NAME}` placeholders in template with values from variables.

    Placeholders outside the PKG_ namespace that are not in variables are
    left for the shell. An unknown PKG_ placeholder raises BuildError.
    """
    def replacement(match):
        name = match.group(1)
        if name in variables:
            return variables[name]
        if name.startswith(VARIABLE_PREFIX):
            raise BuildError(
                f"unknown variable ${{{name}}} in instruction '{template}' of package {package}",
                package=package, instruction=template,
            )
        return match.group(0)

    return VARIABLE_PATTERN.sub(replacement, template)


def resolve_instructions(node, variables):
    """Pick the node's instruction list and substitute variables into it."""
    if node.builder and node.self_build:
        logger.debug(f"Using outer build for {node.package_name}; its own build instructions are ignored.")
    return [substitute(ins, variables, package=node.package_name) for ins in node.instructions]


def _run_instruction(command, cwd, env, verbose, runner):
    if verbose:
        lines, process = runner([SHELL, "-c", command], stream_output=True, env=env, cwd=cwd)
        for line in lines:
            logger.step_info(line.rstrip("\n"), indent=4)
        return process.returncode, None, None
    stdout, stderr, returncode = runner([SHELL, "-c", command], env=env, cwd=cwd)
    return returncode, stdout, stderr


def build_package(node, pkg_home, verbose=False, runner=run_shell_command):
    """Run the instructions of one package, stopping at the first failure."""
    variables = build_environment(pkg_home, node.package_name)
    commands = resolve_instructions(node, variables)
    if not os.path.isdir(node.src_path):
        raise BuildError(f"source directory of {node.package_name} not found: {node.src_path}",
                         package=node.package_name)
    os.makedirs(variables["PKG_INSTALL_PATH"], exist_ok=True)

    env = dict(os.environ)
    env.update(variables)
    for index, command in enumerate(commands):
        logger.info(f"  - [{node.package_name}] running: {command}")
        returncode, stdout, stderr = _run_instruction(command, node.src_path, env, verbose, runner)
        if returncode != 0:
            logger.error(f"Instruction {index + 1} failed for {node.package_name} (Exit Code: {returncode}):")
            if stdout:
                logger.error(f"Stdout:\n{stdout}")
            if stderr:
                logger.error(f"Stderr:\n{stderr}")
            raise BuildError(
                f"building {node.package_name} failed at instruction {index + 1} "
                f"'{command}' (exit code {returncode})",
                package=node.package_name, index=index, instruction=command, returncode=returncode,
            )


def build_all(nodes, pkg_home, verbose=False, runner=run_shell_command):
    """
    Build nodes in the given order.

    Raises:
        BuildError: for the first package whose instruction fails; nothing
            after it is run.
    """
    for node in nodes:
        logger.info("installing package.", pkg=node.package_name)
        build_package(node, pkg_home, verbose=verbose, runner=runner)
        logger.success("package installed.", pkg=node.package_name)


def generate_script(nodes, pkg_home):
    """Return a POSIX shell script performing the builds of nodes in order."""
    lines = ["#!/bin/sh", "set -e"]
    for node in nodes:
        variables = build_environment(pkg_home, node.package_name)
        commands = resolve_instructions(node, variables)
        lines.append("")
        lines.append(f"## package {node.package_name}")
        for name, value in variables.items():
            lines.append(f"export {name}={shlex.quote(value)}")
        lines.append(f"mkdir -p {shlex.quote(variables['PKG_INSTALL_PATH'])}")
        lines.append(f"cd {shlex.quote(node.src_path)}")
        lines.extend(commands)
    return "\n".join(lines) + "\n"


def write_script(path, script):
    with open(path, "w") as f:
        f.write(script)
    os.chmod(path, 0o755)
    return path
