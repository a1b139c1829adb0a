"""
Interface de linha de comando
"""
import asyncio
import argparse
import logging
from typing import List, Optional, Sequence

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from ..domain.exceptions import NotFoundError, RepositoryFailure, ValidationError
from ..domain.models import Flight, SearchResult
from ..infrastructure.config import Config
from ..infrastructure.factory import SearchOrchestratorFactory
from ..infrastructure.logging_config import setup_logging
from ..infrastructure.providers.aviationstack_provider import AviationStackProvider
from ..infrastructure.repositories.memory import load_repositories

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_INVALID = 2
EXIT_FAILURE = 3


class FlightConnectCLI:
    """Interface CLI para o FlightConnect"""

    def __init__(self, console: Optional[Console] = None, config: Config = None):
        self.console = console or Console()
        self.config = config or Config()

    def run(self, argv: Optional[Sequence[str]] = None) -> int:
        """Executa a interface CLI; retorna o código de saída"""
        args = self._parse_arguments(argv)
        setup_logging("DEBUG" if args.verbose else self.config.LOG_LEVEL)

        try:
            flight_repository, seat_repository = load_repositories(args.data)
        except (OSError, ValueError) as e:
            self.console.print(
                Panel.fit(f"[red]Não foi possível carregar {args.data}:[/red]\n{e}",
                          title="Dados Inválidos", border_style="red")
            )
            return EXIT_INVALID

        provider = AviationStackProvider(self.config) if self.config.is_aviationstack_configured() else None
        orchestrator = SearchOrchestratorFactory.create(
            flight_repository, seat_repository, config=self.config, provider=provider,
        )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=self.console,
            transient=True,
        ) as progress:
            progress.add_task("Buscando voos...", total=None)
            try:
                outcome = asyncio.run(self._execute(orchestrator, provider, args))
            except (ValidationError, NotFoundError) as e:
                outcome = e
            except RepositoryFailure as e:
                logger.error("Search aborted: %s", e)
                outcome = e

        return self._display(outcome)

    async def _execute(self, orchestrator, provider: Optional[AviationStackProvider], args: argparse.Namespace):
        try:
            if args.flight:
                return await orchestrator.get_flight_details(args.flight)
            result = await orchestrator.search(
                args.origin,
                args.destination,
                args.depart,
                return_date=args.return_date,
                seat_class=args.cabin,
                max_connections=args.max_connections,
                airline_id=args.airline,
            )
            return result.paginate(args.page, args.size)
        finally:
            await orchestrator.wait_for_pending_writes()
            if provider is not None:
                await provider.aclose()

    def _parse_arguments(self, argv: Optional[Sequence[str]]) -> argparse.Namespace:
        """Configura e processa argumentos da linha de comando"""
        parser = argparse.ArgumentParser(
            prog="flight_connect",
            description="FlightConnect - Busca de voos diretos e com conexões",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Exemplos de uso:
  python -m flight_connect --data flights.json --origin JFK --destination LAX --depart 2026-11-02
  python -m flight_connect --data flights.json --origin JFK --destination SFO --depart 2026-11-02 --max-connections 1
  python -m flight_connect --data flights.json --origin GRU --destination LIS --depart 2026-11-02 --cabin BUSINESS --airline TP
  python -m flight_connect --data flights.json --flight AA100-20261102
            """
        )

        parser.add_argument("--data", required=True,
                          help="Arquivo JSON com voos e assentos")

        # Critérios (validados pelo motor de busca)
        parser.add_argument("--origin",
                          help="Código IATA origem (ex: JFK)")
        parser.add_argument("--destination",
                          help="Código IATA destino (ex: LAX)")
        parser.add_argument("--depart",
                          help="Data partida YYYY-MM-DD")
        parser.add_argument("--return", dest="return_date",
                          help="Data retorno YYYY-MM-DD (para ida e volta)")
        parser.add_argument("--cabin", type=str.upper,
                          help="Classe de cabine (ECONOMY, PREMIUM_ECONOMY, BUSINESS, FIRST)")
        parser.add_argument("--max-connections", type=int, default=0,
                          help="Número máximo de conexões: 0, 1 ou 2 (padrão: 0)")
        parser.add_argument("--airline",
                          help="Apenas itinerários operados por esta companhia")

        # Paginação
        parser.add_argument("--page", type=int, default=0,
                          help="Página (começa em 0)")
        parser.add_argument("--size", type=int, default=20,
                          help="Itinerários por página (1-100, padrão: 20)")

        parser.add_argument("--flight",
                          help="Exibe detalhes de um voo pelo identificador")
        parser.add_argument("--verbose", action="store_true",
                          help="Logging em nível DEBUG")

        return parser.parse_args(argv)

    def _display(self, outcome) -> int:
        if isinstance(outcome, ValidationError):
            self.console.print(
                Panel.fit(
                    f"[red]{outcome.message}[/red]\nCampo: {outcome.field} | Código: {outcome.code}",
                    title="Critérios Inválidos",
                    border_style="red"
                )
            )
            return EXIT_INVALID

        if isinstance(outcome, NotFoundError):
            self.console.print(
                Panel.fit(
                    f"[yellow]{outcome}[/yellow]\n"
                    "Tente outra data, mais conexões ou remova o filtro de classe.",
                    title="Sem Resultados",
                    border_style="yellow"
                )
            )
            return EXIT_NOT_FOUND

        if isinstance(outcome, RepositoryFailure):
            self.console.print(Panel.fit(f"[red]{outcome.public_message}[/red]", title="Erro", border_style="red"))
            return EXIT_FAILURE

        if isinstance(outcome, Flight):
            self._display_flight(outcome)
        else:
            self._display_results(outcome)
        return EXIT_OK

    def _display_results(self, result: SearchResult):
        """Exibe resultados da busca"""
        criteria = result.search_criteria
        title = (
            f"🛫 {criteria.origin} → {criteria.destination} em "
            f"{criteria.departure_date.strftime('%d/%m/%Y')} "
            f"(página {result.page + 1} de {max(result.total_pages, 1)})"
        )
        table = Table(show_lines=True, title=title)

        table.add_column("#", justify="right", width=4)
        table.add_column("Rota", style="yellow", width=22)
        table.add_column("Voos", style="bold cyan", width=24)
        table.add_column("Partida", width=17)
        table.add_column("Chegada", width=17)
        table.add_column("Duração", justify="right", width=9)
        table.add_column("Conexões", justify="center", width=16)
        table.add_column("Assentos", width=28)

        offset = result.page * (result.page_size or 0)
        for index, itinerary in enumerate(result.itineraries, start=offset + 1):
            flights = ", ".join(leg.flight_number or leg.flight_id for leg in itinerary.legs)
            layovers = " / ".join(f"{m}min" for m in itinerary.layover_minutes)
            table.add_row(
                str(index),
                itinerary.route_summary,
                flights,
                itinerary.departure_time.strftime("%d/%m %H:%M UTC"),
                itinerary.arrival_time.strftime("%d/%m %H:%M UTC"),
                self._format_duration(itinerary.total_duration_minutes),
                f"{itinerary.connections}" + (f" ({layovers})" if layovers else ""),
                self._format_seats(itinerary.legs, criteria.seat_class),
            )

        self.console.print(table)

        stats_text = f"""
📊 Estatísticas da Busca:
• Total encontrado: {result.total_results} itinerários
• Companhias: {result.unique_airlines}
• Mais curto: {self._format_duration(result.shortest_itinerary.total_duration_minutes) if result.shortest_itinerary else '-'}
• Origem dos dados: {'cache' if result.from_cache else 'repositório'}
• Busca realizada: {result.search_timestamp.strftime('%d/%m/%Y %H:%M')}
        """
        self.console.print(Panel.fit(stats_text.strip(), title="Resumo", border_style="blue"))

    def _display_flight(self, flight: Flight):
        """Exibe detalhes de um voo"""
        seats = "\n".join(
            f"• {seat_class}: {count}" for seat_class, count in sorted(flight.seat_availability.items())
        ) or "• sem registros"
        text = f"""
✈️ {flight.airline_id} {flight.flight_number or ''} ({flight.flight_id})
• Rota: {flight.origin} → {flight.destination}
• Partida: {flight.departure_time.strftime('%d/%m/%Y %H:%M UTC')}
• Chegada: {flight.arrival_time.strftime('%d/%m/%Y %H:%M UTC')}
• Duração: {self._format_duration(flight.duration_minutes)}
• Status: {flight.status or 'N/A'}
Assentos:
{seats}
        """
        self.console.print(Panel.fit(text.strip(), title="Detalhes do Voo", border_style="blue"))

    @staticmethod
    def _format_duration(minutes: int) -> str:
        return f"{minutes // 60}h{minutes % 60:02d}"

    @staticmethod
    def _format_seats(legs: List[Flight], seat_class: Optional[str]) -> str:
        if seat_class:
            return " / ".join(str(leg.available_seats_for_class(seat_class)) for leg in legs) + f" {seat_class}"
        totals = [sum(leg.seat_availability.values()) for leg in legs]
        return " / ".join(str(total) for total in totals) if any(totals) else "-"


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Função principal"""
    cli = FlightConnectCLI()
    return cli.run(argv)


if __name__ == "__main__":
    raise SystemExit(main())
