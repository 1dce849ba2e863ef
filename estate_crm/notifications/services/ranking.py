def rank_notifications(notifications):
    """
    Highest priority first, then most recent timestamp first.

    Ids break the remaining ties so the order is total and repeatable.
    """
    by_id = sorted(notifications, key=lambda n: n.id)
    by_time = sorted(by_id, key=lambda n: n.timestamp, reverse=True)
    return sorted(by_time, key=lambda n: n.priority_rank, reverse=True)
