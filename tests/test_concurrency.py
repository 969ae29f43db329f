import threading

from syndicate.models import db, BankAccount
from syndicate.seed import seed_economy
from syndicate.services.errors import AlreadyClaimed, EconomyError, InsufficientFunds

from conftest import add_character, character


def run_threads(app, jobs):
    """Run each job in its own thread and app context; returns results/errors in job order."""
    results = [None] * len(jobs)
    barrier = threading.Barrier(len(jobs))

    def worker(i, job):
        with app.app_context():
            barrier.wait()
            try:
                results[i] = job()
            except EconomyError as exc:
                results[i] = exc
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker, args=(i, job)) for i, job in enumerate(jobs)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(30)
    return results


def test_parallel_claims_pay_once(file_app):
    engine = file_app.extensions["economy"]
    seed_economy()
    cid = add_character(money=0)
    engine.update_progress(cid, "crimes_committed", 25)
    db.session.commit()

    results = run_threads(file_app, [lambda: engine.claim_task_reward(cid, 2)] * 4)

    claimed = [r for r in results if isinstance(r, dict)]
    rejected = [r for r in results if isinstance(r, AlreadyClaimed)]
    assert len(claimed) == 1
    assert len(rejected) == 3
    db.session.expire_all()
    assert character(cid).money == 1000


def test_purchases_and_withdrawals_never_go_negative(file_app):
    engine = file_app.extensions["economy"]
    seed_economy()
    cid = add_character(money=1000)
    engine.deposit(cid, 300)
    db.session.commit()

    jobs = [lambda: engine.purchase(cid, "weapon", 2)] * 4 + [lambda: engine.withdraw(cid, 100)] * 4
    results = run_threads(file_app, jobs)

    bought = sum(1 for r in results[:4] if isinstance(r, dict))
    withdrawn = sum(1 for r in results[4:] if isinstance(r, dict))
    for r in results:
        assert isinstance(r, (dict, InsufficientFunds)), r

    db.session.expire_all()
    money = character(cid).money
    bank = db.session.get(BankAccount, cid).balance
    # the bank only covers three withdrawals; at most two purchases fit in 1000
    assert withdrawn == 3 and bank == 0
    assert bought in (1, 2)
    assert money == 1000 - 400 * bought


def test_transfers_in_opposite_directions_do_not_deadlock(file_app):
    engine = file_app.extensions["economy"]
    a = add_character("Ann", money=1000)
    b = add_character("Bob", money=1000)
    db.session.commit()

    jobs = [lambda: engine.transfer(a, b, 10), lambda: engine.transfer(b, a, 10)] * 5
    results = run_threads(file_app, jobs)

    assert all(isinstance(r, dict) for r in results), results
    db.session.expire_all()
    assert character(a).money + character(b).money == 2000
