"""
Network Registry

Static table of the EVM networks the Specular protocol is deployed on.
Contract addresses are fixed per deployment; RPC endpoints come from
settings so operators can point at their own nodes.
"""

from dataclasses import dataclass, field

from specular_api.core.config.settings import NetworkSettings, get_settings
from specular_api.core.exceptions import UnknownNetworkError


@dataclass(frozen=True)
class NetworkConfig:
    """One deployment of the protocol."""

    key: str
    name: str
    chain_id: int
    rpc_url: str
    explorer: str
    contracts: dict[str, str] = field(default_factory=dict)
    is_testnet: bool = False

    def summary(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "chainId": self.chain_id,
            "explorer": self.explorer,
            "isTestnet": self.is_testnet,
        }


def build_networks(settings: NetworkSettings | None = None) -> dict[str, NetworkConfig]:
    """Build the registry, applying RPC overrides from settings."""
    settings = settings or get_settings().networks

    return {
        "arc": NetworkConfig(
            key="arc",
            name="Arc Testnet",
            chain_id=5042002,
            rpc_url=settings.ARC_TESTNET_RPC_URL,
            explorer="https://testnet.arcscan.app",
            contracts={
                "registry": "0x741C03c0d95d2c15E479CE1c7E69B3196d86faD7",
                "reputation": "0x94F2fa47c4488202a46dAA9038Ed9C9c4c07467F",
                "marketplace": "0x048363A325A5B188b7FF157d725C5e329f0171D3",
                "usdc": "0xf2807051e292e945751A25616705a9aadfb39895",
            },
            is_testnet=True,
        ),
        "base": NetworkConfig(
            key="base",
            name="Base Mainnet",
            chain_id=8453,
            rpc_url=settings.BASE_RPC_URL,
            explorer="https://basescan.org",
            contracts={
                "registry": "0xb9996de05fD514A0cB2B81fa25448EECD4559Aaa",
                "reputation": "0xf19b1780A84668C8dfB6b4E84C08e457dB3B0527",
                "marketplace": "0xd7b4dEE74C61844DFA75aEbe224e4635463b1C8f",
                "usdc": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
            },
        ),
        "arbitrum": NetworkConfig(
            key="arbitrum",
            name="Arbitrum One",
            chain_id=42161,
            rpc_url=settings.ARBITRUM_RPC_URL,
            explorer="https://arbiscan.io",
            contracts={
                "registry": "0x6F1EbF50290f6D4A9947E9EB77f98a683684fBF5",
                "reputation": "0x1577Eb9985CcA859F25ED2EDaeD16A464ADFaE5e",
                "marketplace": "0xb9996de05fD514A0cB2B81fa25448EECD4559Aaa",
                "usdc": "0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
            },
        ),
    }


class NetworkRegistry:
    """Lookup helpers over the network table."""

    def __init__(self, networks: dict[str, NetworkConfig] | None = None, default: str | None = None):
        self._networks = networks if networks is not None else build_networks()
        self.default = default or get_settings().networks.DEFAULT_NETWORK

    def keys(self) -> list[str]:
        return list(self._networks)

    def is_valid(self, key: str) -> bool:
        return key in self._networks

    def get(self, key: str | None = None) -> NetworkConfig:
        """
        Resolve a network key, falling back to the default.

        Raises:
            UnknownNetworkError: If the key is not registered
        """
        key = key or self.default
        if key not in self._networks:
            raise UnknownNetworkError(
                f"Unknown network: {key}. Available: {', '.join(self._networks)}",
                details={"network": key, "available": self.keys()},
            )
        return self._networks[key]

    def all(self) -> dict[str, NetworkConfig]:
        return dict(self._networks)

    def mainnets(self) -> dict[str, NetworkConfig]:
        return {k: v for k, v in self._networks.items() if not v.is_testnet}

    def testnets(self) -> dict[str, NetworkConfig]:
        return {k: v for k, v in self._networks.items() if v.is_testnet}
