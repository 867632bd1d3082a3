"""Guard patrol -- timed states, guarded transitions, and the state registry.

Demonstrates:
- Registering states on a machine (the first one is entered immediately)
- Timed states whose completed hook names the next state
- An enter guard that reads the context payload
- Looking up a guard's state by name alone through the registry
- Driving everything from a fixed-rate Ticker

Run: python -m examples.patrol
"""

from tick_state import Ticker


def build_guard(ticker: Ticker, name: str):
    guard = ticker.spawn(name)

    guard.add_state("Idle")
    guard.add_state(
        "Patrolling", 2.0,
        started=lambda ctx: print(f"  {name} sets off on patrol"),
        completed=lambda ctx: "Resting",
    )
    guard.add_state(
        "Resting", 1.0,
        completed=lambda ctx: "Patrolling",
    )
    guard.add_state(
        "Chasing",
        enter=lambda ctx: ctx is not None and ctx["distance"] < 5,
        started=lambda ctx: print(f"  {name} spots an intruder at {ctx['distance']}m!"),
    )
    return guard


def main() -> None:
    print("=== Guard Patrol ===\n")

    ticker = Ticker(tps=10)
    alice = build_guard(ticker, "Alice")
    bob = build_guard(ticker, "Bob")
    alice.change_state("Patrolling")
    bob.change_state("Patrolling")

    for second in range(1, 6):
        ticker.run(10)
        if second == 3:
            # Too far away: the guard refuses.
            alice.change_state("Chasing", {"distance": 12})
            bob.change_state("Chasing", {"distance": 3})
        states = {n: ticker.registry.get(n) for n in ("Alice", "Bob")}
        print(f"  t={ticker.clock.now():.1f}s  {states}")

    for guard in (alice, bob):
        guard.destroy()
    print(f"\nDone. Registered guards left: {ticker.registry.identities()}")


if __name__ == "__main__":
    main()
