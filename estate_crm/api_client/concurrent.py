from concurrent.futures import ThreadPoolExecutor, wait


def fetch_all(*calls):
    """
    Run independent API calls concurrently and wait for every one of them.

    Results come back in call order. If any call failed, its exception is
    raised only after all calls have settled, so callers never act on a
    partial set of results.
    """
    with ThreadPoolExecutor(max_workers=max(len(calls), 1)) as pool:
        futures = [pool.submit(call) for call in calls]
        wait(futures)

    return [future.result() for future in futures]
