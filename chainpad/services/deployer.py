# FILE: chainpad/services/deployer.py
"""
Deployment adapter.

The server never holds keys or broadcasts transactions. It:
- packages ABI + bytecode for the browser wallet, with the gas buffer and
  confirmation count the client applies,
- checks a reported deployment (address, network) and, when an RPC URL is
  configured for that network, confirms code exists at the address (web3),
- turns wallet/provider failures into user-facing messages.
"""

import logging
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from chainpad.auth.wallet import is_wallet_address
from chainpad.errors import ExternalServiceError, ValidationFailed
from chainpad.settings import get_settings

logger = logging.getLogger(__name__)

GAS_BUFFER_PERCENT = 20
CONFIRMATIONS = 2
DEPLOYMENT_TIMEOUT_SECONDS = 120

# chainId (hex) -> network name
SUPPORTED_NETWORKS: Dict[str, str] = {
    "0xaa36a7": "sepolia",
    "0x5": "goerli",
}


class DeploymentErrorKind(str, Enum):
    INSUFFICIENT_FUNDS = "insufficient_funds"
    USER_REJECTED = "user_rejected"
    TIMEOUT = "timeout"
    GAS_ESTIMATION = "gas_estimation"
    NO_CODE = "no_code"
    NETWORK = "network"
    UNKNOWN = "unknown"


class DeploymentVerificationError(ValidationFailed):
    """A receipt came back but there is no code at the reported address."""


@dataclass
class DeploymentPackage:
    contract_id: int
    contract_name: str
    abi: List[Dict[str, Any]]
    bytecode: str
    constructor_inputs: List[Dict[str, Any]] = field(default_factory=list)
    gas_buffer_percent: int = GAS_BUFFER_PERCENT
    confirmations: int = CONFIRMATIONS
    timeout_seconds: int = DEPLOYMENT_TIMEOUT_SECONDS
    gas_limit: Optional[int] = None
    supported_networks: Dict[str, str] = field(default_factory=lambda: dict(SUPPORTED_NETWORKS))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# PACKAGING
# =============================================================================

def buffered_gas_limit(estimate: int) -> int:
    """Raw gas estimate plus the 20% safety margin, rounded up."""
    if estimate < 0:
        raise ValueError("Gas estimate cannot be negative")
    return (estimate * (100 + GAS_BUFFER_PERCENT) + 99) // 100


def constructor_inputs(abi: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    for item in abi or []:
        if item.get("type") == "constructor":
            return list(item.get("inputs") or [])
    return []


def _display_name(contract) -> str:
    name = contract.name or ""
    return name[:-4] if name.endswith(".sol") else name


def prepare_deployment(contract, gas_estimate: Optional[int] = None) -> DeploymentPackage:
    """
    Package a compiled contract for the browser wallet.

    With a raw gas estimate from the wallet, the package also carries the
    buffered gas limit to send with the transaction.

    Raises:
        ValidationFailed: the record is a folder or has not been compiled
    """
    if not contract.is_file:
        raise ValidationFailed("Only files can be deployed")
    if not contract.is_compiled:
        raise ValidationFailed("Contract must be compiled before deployment")

    return DeploymentPackage(
        contract_id=contract.id,
        contract_name=_display_name(contract),
        abi=contract.abi,
        bytecode=contract.bytecode,
        constructor_inputs=constructor_inputs(contract.abi),
        gas_limit=buffered_gas_limit(gas_estimate) if gas_estimate is not None else None,
    )


# =============================================================================
# NETWORKS
# =============================================================================

def network_for_chain_id(chain_id: Union[str, int]) -> Optional[str]:
    """Network name for a hex or decimal chain id; None if unknown or not a number."""
    if isinstance(chain_id, int):
        key = hex(chain_id)
    else:
        value = chain_id.strip().lower()
        try:
            key = hex(int(value, 16)) if value.startswith("0x") else hex(int(value))
        except ValueError:
            return None
    return SUPPORTED_NETWORKS.get(key)


def normalize_network(network: str) -> str:
    """
    Lowercase a network name and check it is one we can deploy to.

    Networks with a configured RPC URL are accepted alongside the built-in ones.
    """
    name = (network or "").strip().lower()
    if not name:
        raise ValidationFailed("Network is required")
    if name not in SUPPORTED_NETWORKS.values() and name not in get_settings().rpc_urls:
        raise ValidationFailed(
            f"Unsupported network: {network}",
            details={"supported": sorted(set(SUPPORTED_NETWORKS.values()))},
        )
    return name


def resolve_network(network: Optional[str], chain_id: Optional[Union[str, int]] = None) -> str:
    """
    Pick the deployment network from a name, a wallet chain id, or both.

    A chain id the server knows must agree with an explicit network name.
    """
    from_chain = network_for_chain_id(chain_id) if chain_id is not None else None

    if not (network or "").strip():
        if from_chain is None:
            if chain_id is None:
                raise ValidationFailed("Network is required")
            raise ValidationFailed(
                f"Unsupported chain id: {chain_id}",
                details={"supported": dict(SUPPORTED_NETWORKS)},
            )
        return from_chain

    name = normalize_network(network)
    if from_chain is not None and from_chain != name:
        raise ValidationFailed(
            f"Chain id {chain_id} belongs to {from_chain}, not {name}",
            details={"chainId": chain_id, "network": name},
        )
    return name


# =============================================================================
# VERIFICATION
# =============================================================================

def fetch_code(address: str, rpc_url: str) -> bytes:
    from web3 import Web3

    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 30}))
    return bytes(w3.eth.get_code(Web3.to_checksum_address(address)))


def verify_deployed_code(address: str, network: str) -> Optional[bool]:
    """
    Check that code exists at a deployed address.

    Returns None when no RPC URL is configured for the network (check skipped).

    Raises:
        DeploymentVerificationError: no code at the address
        ExternalServiceError: the RPC endpoint could not be queried
    """
    rpc_url = get_settings().rpc_urls.get(network)
    if not rpc_url:
        logger.debug("[deployer] No RPC URL for %s; skipping code check", network)
        return None

    try:
        code = fetch_code(address, rpc_url)
    except Exception as e:
        logger.warning("[deployer] Code check for %s on %s failed: %s", address, network, e)
        raise ExternalServiceError(f"Failed to reach {network} RPC", details=str(e))

    if not code:
        raise DeploymentVerificationError("Contract deployment failed - no code at address")
    return True


def check_deployment(
    address: str,
    network: Optional[str],
    chain_id: Optional[Union[str, int]] = None,
) -> Tuple[str, str]:
    """Validate a reported deployment; returns the normalized (address, network)."""
    if not is_wallet_address(address):
        raise ValidationFailed(f"Invalid contract address: {address}")
    network = resolve_network(network, chain_id)
    verify_deployed_code(address, network)
    return address, network


# =============================================================================
# ERROR MESSAGES
# =============================================================================

def describe_deployment_error(code: Optional[Union[str, int]], message: str = "") -> Tuple[DeploymentErrorKind, str]:
    """Map a wallet/provider failure to a kind and a message for the user."""
    text = (message or "").lower()

    if code == "INSUFFICIENT_FUNDS" or "insufficient funds" in text:
        return (
            DeploymentErrorKind.INSUFFICIENT_FUNDS,
            "Insufficient funds for contract deployment. Please make sure you have enough ETH in your wallet.",
        )
    if code in (4001, "4001", "ACTION_REJECTED") or "user rejected" in text:
        return (
            DeploymentErrorKind.USER_REJECTED,
            "Transaction rejected. Please confirm the transaction in your wallet.",
        )
    if "no code at address" in text:
        return (
            DeploymentErrorKind.NO_CODE,
            "Contract deployment failed - no code at the deployed address.",
        )
    if code == "TIMEOUT" or "timeout" in text or "timed out" in text:
        return DeploymentErrorKind.TIMEOUT, "Deployment timed out. Please try again."
    if "gas" in text:
        return (
            DeploymentErrorKind.GAS_ESTIMATION,
            "Gas estimation failed. The contract might be too complex or there might be an error in the code.",
        )
    if code == "NETWORK_ERROR" or "network" in text:
        return (
            DeploymentErrorKind.NETWORK,
            "Network error during deployment. Please check your connection and selected network.",
        )
    return DeploymentErrorKind.UNKNOWN, f"Failed to deploy contract: {message or 'Unknown error'}"
