"""The fixed, ordered Uniswap V3 deployment plan.

Each later step may read the address any earlier step recorded, so the order
of ``MIGRATION_STEPS`` is the execution order and must not change.
"""

from __future__ import annotations

from deploy_v3.constants import (
    ONE_BP_FEE,
    ONE_BP_TICK_SPACING,
    ONE_MONTH_SECONDS,
    ONE_YEAR_SECONDS,
)
from deploy_v3.core.step import StepDefinition, require
from deploy_v3.steps.configure import EnableFeeTierStep, TransferOwnershipStep
from deploy_v3.steps.deploy_contract import DeployContractStep

# UniswapV3Staker limits
MAX_INCENTIVE_START_LEAD_TIME = ONE_MONTH_SECONDS
MAX_INCENTIVE_DURATION = ONE_YEAR_SECONDS * 2


DEPLOY_V3_CORE_FACTORY = DeployContractStep(
    key="v3CoreFactoryAddress",
    artifact="UniswapV3Factory",
)

ADD_1BP_FEE_TIER = EnableFeeTierStep(
    key="add1BasisPointFeeTier",
    fee=ONE_BP_FEE,
    tick_spacing=ONE_BP_TICK_SPACING,
)

DEPLOY_MULTICALL2 = DeployContractStep(
    key="multicall2Address",
    artifact="UniswapInterfaceMulticall",
)

DEPLOY_PROXY_ADMIN = DeployContractStep(
    key="proxyAdminAddress",
    artifact="ProxyAdmin",
)

DEPLOY_TICK_LENS = DeployContractStep(
    key="tickLensAddress",
    artifact="TickLens",
)

DEPLOY_NFT_DESCRIPTOR_LIBRARY_V1_3_0 = DeployContractStep(
    key="nftDescriptorLibraryAddressV1_3_0",
    artifact="NFTDescriptor",
)

DEPLOY_NFT_POSITION_DESCRIPTOR_V1_3_0 = DeployContractStep(
    key="nonfungibleTokenPositionDescriptorAddressV1_3_0",
    artifact="NonfungibleTokenPositionDescriptor",
    requires=("nftDescriptorLibraryAddressV1_3_0",),
    compute_arguments=lambda state, config: [
        config.weth9_address,
        config.native_currency_label_bytes,
    ],
    compute_libraries=lambda state, config: {
        "NFTDescriptor": require(
            state, "nftDescriptorLibraryAddressV1_3_0", "NFTDescriptor library"
        ),
    },
)

DEPLOY_TRANSPARENT_PROXY_DESCRIPTOR = DeployContractStep(
    key="descriptorProxyAddress",
    artifact="TransparentUpgradeableProxy",
    requires=("nonfungibleTokenPositionDescriptorAddressV1_3_0", "proxyAdminAddress"),
    compute_arguments=lambda state, config: [
        require(
            state,
            "nonfungibleTokenPositionDescriptorAddressV1_3_0",
            "NonfungibleTokenPositionDescriptor",
        ),
        require(state, "proxyAdminAddress", "ProxyAdmin"),
        b"",
    ],
)

DEPLOY_NONFUNGIBLE_POSITION_MANAGER = DeployContractStep(
    key="nonfungibleTokenPositionManagerAddress",
    artifact="NonfungiblePositionManager",
    requires=("v3CoreFactoryAddress", "descriptorProxyAddress"),
    compute_arguments=lambda state, config: [
        require(state, "v3CoreFactoryAddress", "V3 Core Factory"),
        config.weth9_address,
        require(state, "descriptorProxyAddress", "descriptor proxy"),
    ],
)

DEPLOY_V3_MIGRATOR = DeployContractStep(
    key="v3MigratorAddress",
    artifact="V3Migrator",
    requires=("v3CoreFactoryAddress", "nonfungibleTokenPositionManagerAddress"),
    compute_arguments=lambda state, config: [
        require(state, "v3CoreFactoryAddress", "V3 Core Factory"),
        config.weth9_address,
        require(
            state,
            "nonfungibleTokenPositionManagerAddress",
            "NonfungiblePositionManager",
        ),
    ],
)

TRANSFER_V3_CORE_FACTORY_OWNER = TransferOwnershipStep(
    key="v3CoreFactoryOwner",
    target_key="v3CoreFactoryAddress",
    artifact="UniswapV3Factory",
    transfer_function="setOwner",
    label="V3 Core Factory",
)

DEPLOY_V3_STAKER = DeployContractStep(
    key="v3StakerAddress",
    artifact="UniswapV3Staker",
    requires=("v3CoreFactoryAddress", "nonfungibleTokenPositionManagerAddress"),
    compute_arguments=lambda state, config: [
        require(state, "v3CoreFactoryAddress", "V3 Core Factory"),
        require(
            state,
            "nonfungibleTokenPositionManagerAddress",
            "NonfungiblePositionManager",
        ),
        MAX_INCENTIVE_START_LEAD_TIME,
        MAX_INCENTIVE_DURATION,
    ],
)

DEPLOY_QUOTER_V2 = DeployContractStep(
    key="quoterV2Address",
    artifact="QuoterV2",
    requires=("v3CoreFactoryAddress",),
    compute_arguments=lambda state, config: [
        require(state, "v3CoreFactoryAddress", "V3 Core Factory"),
        config.weth9_address,
    ],
)

DEPLOY_V3_SWAP_ROUTER_02 = DeployContractStep(
    key="swapRouter02",
    artifact="SwapRouter",
    requires=("v3CoreFactoryAddress",),
    compute_arguments=lambda state, config: [
        require(state, "v3CoreFactoryAddress", "V3 Core Factory"),
        config.weth9_address,
    ],
)

TRANSFER_PROXY_ADMIN = TransferOwnershipStep(
    key="proxyAdminOwner",
    target_key="proxyAdminAddress",
    artifact="ProxyAdmin",
    transfer_function="transferOwnership",
    label="ProxyAdmin",
)


MIGRATION_STEPS: tuple[StepDefinition, ...] = (
    DEPLOY_V3_CORE_FACTORY,
    ADD_1BP_FEE_TIER,
    DEPLOY_MULTICALL2,
    DEPLOY_PROXY_ADMIN,
    DEPLOY_TICK_LENS,
    DEPLOY_NFT_DESCRIPTOR_LIBRARY_V1_3_0,
    DEPLOY_NFT_POSITION_DESCRIPTOR_V1_3_0,
    DEPLOY_TRANSPARENT_PROXY_DESCRIPTOR,
    DEPLOY_NONFUNGIBLE_POSITION_MANAGER,
    DEPLOY_V3_MIGRATOR,
    TRANSFER_V3_CORE_FACTORY_OWNER,
    DEPLOY_V3_STAKER,
    DEPLOY_QUOTER_V2,
    DEPLOY_V3_SWAP_ROUTER_02,
    TRANSFER_PROXY_ADMIN,
)
