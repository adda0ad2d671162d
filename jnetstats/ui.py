# jnetstats/ui.py

from typing import Any, Dict, List


class TerminalUI:
    """Plain terminal output for the command-line report."""

    @staticmethod
    def _format_pct(value: Any, decimals: int = 1) -> str:
        if value is None:
            return 'N/A'
        return f'{value * 100:.{decimals}f}%'

    def show_sources(self, sources: List[Dict[str, Any]]):
        """Display which file contributed which player."""
        print("\n" + "="*50)
        print("Loaded history files:")
        print("="*50)
        for i, source in enumerate(sources, 1):
            name = source.get('name') or 'unknown player'
            print(f"{i}. {source['file_name']}: {source['total_games']} games ({name})")

    def show_identity_table(self, title: str, rows: List[Dict[str, Any]], limit: int = 15):
        """Display identity or opponent win rates."""
        print("\n" + "-"*50)
        print(title)
        print("-"*50)
        if not rows:
            print("  No decided games.")
            return
        for row in rows[:limit]:
            print(
                f"  {row['short_name'][:26]:<26} {row['wins']:>4}-{row['losses']:<4} "
                f"{self._format_pct(row['win_rate']):>7}"
            )

    def show_histogram(self, title: str, buckets: List[Dict[str, Any]]):
        """Display a win/loss histogram as text bars."""
        print("\n" + "-"*50)
        print(title)
        print("-"*50)
        if not buckets:
            print("  No data.")
            return
        widest = max(bucket['total'] for bucket in buckets) or 1
        for bucket in buckets:
            wins = round(bucket['wins'] * 30 / widest)
            losses = round(bucket['losses'] * 30 / widest)
            print(f"  {bucket['value']:>3} | {'+' * wins}{'-' * losses} ({bucket['wins']}/{bucket['losses']})")

    def show_error(self, message: str):
        """Display error message."""
        print(f"\nERROR: {message}\n")
