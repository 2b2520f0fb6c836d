# ---------- Minimal ABIs ----------
# Only the functions/events this service calls or encodes.

ERC20_ABI = [
    {"constant": True, "inputs": [{"name": "","type": "address"}], "name": "balanceOf", "outputs": [{"name": "","type": "uint256"}], "type": "function"},
    {"constant": True, "inputs": [], "name": "decimals", "outputs": [{"name": "","type": "uint8"}], "type": "function"},
    {"constant": True, "inputs": [], "name": "symbol", "outputs": [{"name": "","type": "string"}], "type": "function"},
    {"constant": True, "inputs": [], "name": "name", "outputs": [{"name": "","type": "string"}], "type": "function"},
    {"constant": True, "inputs": [{"name": "","type": "address"},{"name": "","type": "address"}], "name": "allowance", "outputs": [{"name": "","type": "uint256"}], "type": "function"},
    {"constant": False, "inputs": [{"name": "spender","type": "address"},{"name": "value","type": "uint256"}], "name": "approve", "outputs": [{"name": "","type": "bool"}], "type": "function"},
]

# Uniswap V3 QuoterV2 (struct params, returns gas estimate as well)
V3_QUOTER_V2_ABI = [
    {"name":"quoteExactInputSingle","type":"function","stateMutability":"nonpayable","inputs":[
        {"name":"params","type":"tuple","components":[
            {"name":"tokenIn","type":"address"},
            {"name":"tokenOut","type":"address"},
            {"name":"amountIn","type":"uint256"},
            {"name":"fee","type":"uint24"},
            {"name":"sqrtPriceLimitX96","type":"uint160"}
        ]}
    ],"outputs":[
        {"name":"amountOut","type":"uint256"},
        {"name":"sqrtPriceX96After","type":"uint160"},
        {"name":"initializedTicksCrossed","type":"uint32"},
        {"name":"gasEstimate","type":"uint256"}
    ]}
]

# Uniswap SwapRouter02: exactInputSingle has no deadline field, the deadline
# is enforced by wrapping the call in multicall(uint256,bytes[]).
V3_SWAP_ROUTER02_ABI = [
    {"name":"exactInputSingle","type":"function","stateMutability":"payable","inputs":[
        {"name":"params","type":"tuple","components":[
            {"name":"tokenIn","type":"address"},
            {"name":"tokenOut","type":"address"},
            {"name":"fee","type":"uint24"},
            {"name":"recipient","type":"address"},
            {"name":"amountIn","type":"uint256"},
            {"name":"amountOutMinimum","type":"uint256"},
            {"name":"sqrtPriceLimitX96","type":"uint160"}
        ]}
    ],"outputs":[{"name":"amountOut","type":"uint256"}]},
    {"name":"multicall","type":"function","stateMutability":"payable","inputs":[
        {"name":"deadline","type":"uint256"},
        {"name":"data","type":"bytes[]"}
    ],"outputs":[{"name":"","type":"bytes[]"}]},
]

_POOL_KEY_COMPONENTS = [
    {"name":"currency0","type":"address"},
    {"name":"currency1","type":"address"},
    {"name":"fee","type":"uint24"},
    {"name":"tickSpacing","type":"int24"},
    {"name":"hooks","type":"address"}
]

V4_QUOTER_ABI = [
    {"name":"quoteExactInputSingle","type":"function","stateMutability":"nonpayable","inputs":[
        {"name":"params","type":"tuple","components":[
            {"name":"poolKey","type":"tuple","components":_POOL_KEY_COMPONENTS},
            {"name":"zeroForOne","type":"bool"},
            {"name":"exactAmount","type":"uint128"},
            {"name":"hookData","type":"bytes"}
        ]}
    ],"outputs":[
        {"name":"amountOut","type":"uint256"},
        {"name":"gasEstimate","type":"uint256"}
    ]}
]

V4_POOL_MANAGER_ABI = [
    {"name":"swap","type":"function","stateMutability":"nonpayable","inputs":[
        {"name":"key","type":"tuple","components":_POOL_KEY_COMPONENTS},
        {"name":"params","type":"tuple","components":[
            {"name":"zeroForOne","type":"bool"},
            {"name":"amountSpecified","type":"int256"},
            {"name":"sqrtPriceLimitX96","type":"uint160"}
        ]},
        {"name":"hookData","type":"bytes"}
    ],"outputs":[{"name":"swapDelta","type":"int256"}]},
    {"name":"Initialize","type":"event","anonymous":False,"inputs":[
        {"name":"id","type":"bytes32","indexed":True},
        {"name":"currency0","type":"address","indexed":True},
        {"name":"currency1","type":"address","indexed":True},
        {"name":"fee","type":"uint24","indexed":False},
        {"name":"tickSpacing","type":"int24","indexed":False},
        {"name":"hooks","type":"address","indexed":False},
        {"name":"sqrtPriceX96","type":"uint160","indexed":False},
        {"name":"tick","type":"int24","indexed":False}
    ]},
]
