"""Chain tables served by the ``supported-chains`` resources."""

from typing import Any, Dict, List, Tuple

# (chain id, name, is testnet)
NETWORKS: Tuple[Tuple[int, str, bool], ...] = (
    (1, "Ethereum", False),
    (10, "Optimism", False),
    (56, "BNB Smart Chain", False),
    (137, "Polygon", False),
    (42161, "Arbitrum One", False),
    (43114, "Avalanche C-Chain", False),
    (8453, "Base", False),
    (250, "Fantom Opera", False),
    (1101, "Polygon zkEVM", False),
    (324, "zkSync Era", False),
    (59144, "Linea", False),
    (7777777, "Zora", False),
    (534352, "Scroll", False),
    (81457, "Blast", False),
    (424, "PulseChain", False),
    (369, "PulseChain Testnet", True),
    (11155420, "Optimism Sepolia", True),
    (80001, "Mumbai", True),
    (421614, "Arbitrum Sepolia", True),
    (43113, "Fuji", True),
    (84532, "Base Sepolia", True),
    (4002, "Fantom Testnet", True),
    (1442, "Polygon zkEVM Testnet", True),
    (280, "zkSync Era Testnet", True),
    (59140, "Linea Testnet", True),
    (999999999, "Zora Testnet", True),
    (534351, "Scroll Sepolia", True),
    (168587773, "Blast Sepolia", True),
)

CHART_NETWORKS: Tuple[Tuple[int, str], ...] = (
    (1, "Ethereum"),
    (56, "BNB Smart Chain"),
    (137, "Polygon"),
    (42161, "Arbitrum One"),
    (43114, "Avalanche C-Chain"),
    (100, "Gnosis Chain"),
    (10, "Optimism"),
    (8453, "Base"),
    (324, "zkSync Era"),
    (59144, "Linea"),
    (146, "Polygon zkEVM"),
    (130, "Polygon zkEVM Testnet"),
)


def supported_chains(description: str, with_testnet_flag: bool = False) -> Dict[str, Any]:
    chains: List[Dict[str, Any]] = []
    for chain_id, name, is_testnet in NETWORKS:
        entry: Dict[str, Any] = {"id": chain_id, "name": name}
        if with_testnet_flag:
            entry["is_testnet"] = is_testnet
        chains.append(entry)
    return {"chains": chains, "description": description}
