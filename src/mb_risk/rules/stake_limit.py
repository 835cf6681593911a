from src.mb_common.errors import StakeAboveMaximumError, StakeBelowMinimumError


def check_stake_limit(stake: int, minimum: int, maximum: int) -> None:
    """Raise StakeBelowMinimum / StakeAboveMaximum if stake is not in [minimum, maximum]."""
    if stake < minimum:
        raise StakeBelowMinimumError(stake, minimum)
    if stake > maximum:
        raise StakeAboveMaximumError(stake, maximum)
