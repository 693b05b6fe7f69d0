"""Edit distance between two word tokens."""


def levenshtein(a: str, b: str) -> int:
    """
    Classic Levenshtein distance with unit insertion, deletion and substitution costs.

    Args:
        a: First token
        b: Second token

    Returns:
        Minimum number of single-character edits turning a into b
    """
    m, n = len(a), len(b)
    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(m + 1):
        dp[i][0] = i
    for j in range(n + 1):
        dp[0][j] = j

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            cost_sub = 0 if a[i - 1] == b[j - 1] else 1
            dp[i][j] = min(
                dp[i - 1][j] + 1,
                dp[i][j - 1] + 1,
                dp[i - 1][j - 1] + cost_sub,
            )
    return dp[m][n]
