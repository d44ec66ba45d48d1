# FILE: chainpad/services/compiler.py
"""
Solidity compilation adapter (py-solc-x).

Turns one source string into an ABI/bytecode pair, or a list of compiler
diagnostics. Only diagnostics with severity "error" block success; warnings
travel alongside a successful result.

Settings are fixed (optimizer on, 200 runs) so the same source always
produces the same bytecode for a given solc version.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import solcx
from solcx.exceptions import SolcError

from chainpad.errors import ChainPadError, ExternalServiceError
from chainpad.settings import get_settings

logger = logging.getLogger(__name__)

SOURCE_UNIT = "contract.sol"
OPTIMIZER_RUNS = 200

_LINE_COMMENT_RE = re.compile(r"//[^\n]*")
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_CONTRACT_DECL_RE = re.compile(
    r"\b(abstract\s+)?contract\s+([A-Za-z_$][A-Za-z0-9_$]*)"
)


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class CompilerDiagnostic:
    severity: str
    message: str
    formatted_message: str
    type: Optional[str] = None

    @classmethod
    def from_solc(cls, entry: Dict[str, Any]) -> "CompilerDiagnostic":
        message = entry.get("message") or ""
        return cls(
            severity=entry.get("severity", "error"),
            message=message,
            formatted_message=entry.get("formattedMessage") or message,
            type=entry.get("type"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity,
            "message": self.message,
            "formattedMessage": self.formatted_message,
            "type": self.type,
        }


@dataclass
class CompilationOutput:
    contract_name: str
    abi: List[Dict[str, Any]]
    bytecode: str
    warnings: List[CompilerDiagnostic] = field(default_factory=list)


class CompilationFailed(ChainPadError):
    """The compiler reported at least one error-severity diagnostic."""

    status_code = 400

    def __init__(self, errors: List[CompilerDiagnostic]):
        self.errors = errors
        super().__init__(
            "Compilation failed",
            details=[e.to_dict() for e in errors],
        )

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": self.details}


class CompilationStructureError(ChainPadError):
    """Compiler ran, but its output has no usable entry for the contract."""

    status_code = 422


# =============================================================================
# HELPERS
# =============================================================================

def strip_comments(source: str) -> str:
    return _LINE_COMMENT_RE.sub("", _BLOCK_COMMENT_RE.sub("", source))


def find_contract_name(source: str) -> Optional[str]:
    """
    Name of the first `contract <Name>` declaration.

    Abstract contracts are only chosen when no concrete contract exists.
    """
    first_abstract = None
    for match in _CONTRACT_DECL_RE.finditer(strip_comments(source)):
        if match.group(1):
            first_abstract = first_abstract or match.group(2)
            continue
        return match.group(2)
    return first_abstract


def build_standard_input(source: str) -> Dict[str, Any]:
    return {
        "language": "Solidity",
        "sources": {SOURCE_UNIT: {"content": source}},
        "settings": {
            "optimizer": {"enabled": True, "runs": OPTIMIZER_RUNS},
            "outputSelection": {
                "*": {"*": ["abi", "evm.bytecode.object", "evm.deployedBytecode.object"]}
            },
        },
    }


def ensure_solc(version: str) -> str:
    """Install the requested solc version on first use."""
    installed = {str(v) for v in solcx.get_installed_solc_versions()}
    if version not in installed:
        logger.info("[compiler] Installing solc %s", version)
        try:
            solcx.install_solc(version)
        except Exception as e:
            logger.error("[compiler] Failed to install solc %s: %s", version, e)
            raise ExternalServiceError("Solidity compiler unavailable", details=str(e))
    return version


def _run_solc(standard_input: Dict[str, Any], version: str) -> Dict[str, Any]:
    try:
        return solcx.compile_standard(standard_input, solc_version=version)
    except SolcError as e:
        # py-solc-x raises when the output carries error-severity entries
        error_dict = getattr(e, "error_dict", None)
        if error_dict:
            return {"errors": error_dict}
        message = getattr(e, "message", None) or str(e)
        return {
            "errors": [{"severity": "error", "message": message, "formattedMessage": message}]
        }


# =============================================================================
# PUBLIC API
# =============================================================================

def compile_source(source: str, solc_version: Optional[str] = None) -> CompilationOutput:
    """
    Compile Solidity source and return the ABI/bytecode of its first contract.

    Raises:
        CompilationStructureError: no contract declaration, or no output for it
        CompilationFailed: the compiler reported errors
        ExternalServiceError: solc could not be installed
    """
    contract_name = find_contract_name(source)
    if not contract_name:
        raise CompilationStructureError("No contract declaration found in source")

    version = ensure_solc(solc_version or get_settings().solc_version)
    output = _run_solc(build_standard_input(source), version)

    diagnostics = [CompilerDiagnostic.from_solc(e) for e in output.get("errors") or []]
    errors = [d for d in diagnostics if d.severity == "error"]
    if errors:
        logger.info("[compiler] %s failed with %d error(s)", contract_name, len(errors))
        raise CompilationFailed(errors)

    entry = None
    for unit_contracts in (output.get("contracts") or {}).values():
        if contract_name in unit_contracts:
            entry = unit_contracts[contract_name]
            break
    if entry is None:
        raise CompilationStructureError(f"No compilation output for contract {contract_name}")

    abi = entry.get("abi")
    bytecode = ((entry.get("evm") or {}).get("bytecode") or {}).get("object")
    if abi is None or bytecode is None:
        raise CompilationStructureError("Invalid compilation output structure")
    if not bytecode:
        raise CompilationStructureError(f"Contract {contract_name} produced no bytecode")

    warnings = [d for d in diagnostics if d.severity != "error"]
    logger.info(
        "[compiler] Compiled %s (%d bytes, %d warning(s))",
        contract_name, len(bytecode) // 2, len(warnings),
    )
    return CompilationOutput(
        contract_name=contract_name,
        abi=abi,
        bytecode=bytecode,
        warnings=warnings,
    )
