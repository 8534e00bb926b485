"""CLI entry point for cogtrainer."""

import logging

import click


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log difficulty adjustments")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """cogtrainer: adaptive difficulty for cognitive training exercises."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    from cogtrainer.config.settings import Settings

    ctx.ensure_object(dict)
    if "settings" not in ctx.obj:
        ctx.obj["settings"] = Settings.load()


def _registry(ctx: click.Context):
    from cogtrainer.exercises.registry import ExerciseRegistry

    return ExerciseRegistry(overrides=ctx.obj["settings"].exercises)


@main.command()
@click.pass_context
def exercises(ctx: click.Context) -> None:
    """List available exercises."""
    for ex in _registry(ctx).list_exercises():
        click.echo(
            f"  {ex.id}: {ex.name} [{ex.adapter}, {ex.min_value:g}-{ex.max_value:g}, "
            f"start {ex.initial:g}]"
        )


@main.command()
@click.argument("exercise_id")
@click.option("--trials", type=click.IntRange(min=1), default=None, help="Number of trials")
@click.option("--seed", type=int, default=None, help="Random seed")
@click.option("--skill", type=click.FloatRange(0.0, 1.0), default=0.5,
              help="Hardness at which the simulated player is right half the time")
@click.option("--save", is_flag=True, help="Store the session in the history")
@click.pass_context
def simulate(ctx: click.Context, exercise_id: str, trials, seed, skill: float, save: bool) -> None:
    """Play a session with a simulated player and print the trace."""
    from cogtrainer.engine.performance import classify_performance
    from cogtrainer.engine.simulation import run_simulation
    from cogtrainer.state.sessions import SessionStore

    settings = ctx.obj["settings"]
    descriptor = _registry(ctx).get_exercise(exercise_id)
    if descriptor is None:
        raise click.BadParameter(f"Unknown exercise: {exercise_id}", param_hint="EXERCISE_ID")

    if seed is None:
        seed = settings.default_seed
    run = run_simulation(descriptor, trials=trials, skill=skill, seed=seed)
    for spec, result in run.trials:
        mark = "+" if result.correct else "-"
        line = f"  {spec.trial_index:3d}  {spec.difficulty:g}  {mark}"
        if result.difficulty_changed:
            line += f"  -> {result.current_difficulty:g}"
        click.echo(line)

    s = run.summary
    click.echo(
        f"Accuracy {s.accuracy:.0%} ({classify_performance(s.accuracy).value}), "
        f"score {s.score}, final difficulty {s.final_difficulty:g}"
    )
    if s.threshold_difficulty is not None:
        click.echo(f"Threshold: {s.threshold_difficulty:g}")
    if save:
        SessionStore(settings.sessions_db, settings.max_sessions_stored).save(s)


@main.command()
@click.argument("exercise_id")
@click.option("--limit", type=int, default=10, help="Sessions to show")
@click.pass_context
def history(ctx: click.Context, exercise_id: str, limit: int) -> None:
    """Show stored sessions for an exercise."""
    from cogtrainer.state.sessions import SessionStore

    settings = ctx.obj["settings"]
    store = SessionStore(settings.sessions_db, settings.max_sessions_stored)
    records = store.history(exercise_id, limit=limit)
    if not records:
        click.echo(f"No sessions for {exercise_id}")
        return
    for r in records:
        s = r.summary
        click.echo(
            f"  {r.created_at[:16]}  {s.correct_trials}/{s.total_trials}  "
            f"{s.accuracy:.0%}  final {s.final_difficulty:g}  score {s.score}"
        )
    agg = store.aggregate(exercise_id)
    click.echo(f"{agg['sessions']} sessions, overall accuracy {agg['accuracy']:.0%}, "
               f"trend {agg['accuracy_trend']:+.3f}")
