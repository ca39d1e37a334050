def _fn(name, inputs, outputs, mutability="view"):
    return {
        "inputs": [{"internalType": t, "name": n, "type": t} for n, t in inputs],
        "name": name,
        "outputs": [{"internalType": t, "name": n, "type": t} for n, t in outputs],
        "stateMutability": mutability,
        "type": "function",
    }


FACTORY_ABI = [
    _fn("totalTokens", [], [("", "uint256")]),
    _fn("tokenAt", [("index", "uint256")], [("", "address")]),
    _fn("tokensList", [("index", "uint256")], [("", "address")]),
    _fn("weth", [], [("", "address")]),
    _fn("router", [], [("", "address")]),
    _fn(
        "getTokenInfo",
        [("token", "address")],
        [
            ("token", "address"),
            ("creator", "address"),
            ("name", "string"),
            ("symbol", "string"),
            ("description", "string"),
            ("imageURI", "string"),
            ("twitter", "string"),
            ("telegram", "string"),
            ("website", "string"),
            ("createdAt", "uint256"),
            ("lpLocked", "bool"),
            ("lockId", "uint256"),
        ],
    ),
    _fn(
        "getTokenMetadata",
        [("token", "address")],
        [
            ("name", "string"),
            ("symbol", "string"),
            ("description", "string"),
            ("imageURI", "string"),
            ("twitter", "string"),
            ("telegram", "string"),
            ("website", "string"),
        ],
    ),
    _fn(
        "createToken",
        [
            ("name", "string"),
            ("symbol", "string"),
            ("decimals", "uint8"),
            ("initialSupply", "uint256"),
            ("metadataURI", "string"),
            ("autoRenounce", "bool"),
        ],
        [("token", "address")],
        "payable",
    ),
]

ROUTER_ABI = [
    _fn(
        "getAmountsOut",
        [("amountIn", "uint256"), ("path", "address[]")],
        [("amounts", "uint256[]")],
    ),
    _fn(
        "getAmountsIn",
        [("amountOut", "uint256"), ("path", "address[]")],
        [("amounts", "uint256[]")],
    ),
    _fn(
        "addLiquidity",
        [
            ("tokenA", "address"),
            ("tokenB", "address"),
            ("amountADesired", "uint256"),
            ("amountBDesired", "uint256"),
            ("amountAMin", "uint256"),
            ("amountBMin", "uint256"),
            ("to", "address"),
            ("deadline", "uint256"),
        ],
        [("amountA", "uint256"), ("amountB", "uint256"), ("liquidity", "uint256")],
        "nonpayable",
    ),
    _fn(
        "swapExactTokensForTokens",
        [
            ("amountIn", "uint256"),
            ("amountOutMin", "uint256"),
            ("path", "address[]"),
            ("to", "address"),
            ("deadline", "uint256"),
        ],
        [("amounts", "uint256[]")],
        "nonpayable",
    ),
]

ERC20_ABI = [
    _fn("name", [], [("", "string")]),
    _fn("symbol", [], [("", "string")]),
    _fn("decimals", [], [("", "uint8")]),
    _fn("totalSupply", [], [("", "uint256")]),
    _fn("balanceOf", [("owner", "address")], [("", "uint256")]),
    _fn(
        "approve",
        [("spender", "address"), ("amount", "uint256")],
        [("", "bool")],
        "nonpayable",
    ),
]

WRAPPED_NATIVE_ABI = ERC20_ABI + [
    _fn("deposit", [], [], "payable"),
    _fn("withdraw", [("wad", "uint256")], [], "nonpayable"),
]
