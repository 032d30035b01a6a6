"""
Marking Summary Example

Cubes and values a small marked parcel of beech and Douglas fir, prints the
per-class synthesis of each species, the product split of the Douglas
volume, the conifer pre-harvest stand table and the sanity checks.

Prerequisites:
    - pip install -e ".[examples]"  (for rich)

Usage:
    python examples/marking_summary.py
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pycubage import (
    ForestryCalculator,
    InMemoryParameterStore,
    SanityChecker,
    StandBeforeHarvestCalculator,
    TariffSelection,
    TreeRecord,
    build_breakdown,
    get_species_catalog,
    seed_defaults,
    split_volume_by_product,
)
from pycubage.tree_utils import calculate_stand_basal_area

console = Console()

PARCEL_AREA_HA = 1.5
PLOT_AREA_M2 = 2000.0


def build_trees():
    """A hand-made marking: measured beech and unmeasured Douglas fir."""
    trees = []
    beech = [(27.0, 19.0), (31.0, 21.5), (36.0, 23.0), (38.5, None), (44.0, 25.0), (52.0, None)]
    for i, (d, h) in enumerate(beech):
        trees.append(TreeRecord(id=f"H{i + 1}", species='HETRE_COMMUN', diameter_cm=d,
                                height_m=h, quality=1 if d > 40 else 2, timestamp_ms=i * 90_000))
    douglas = [21.0, 24.0, 31.0, 33.0, 38.0, 42.0, 47.0, 52.0, 58.0]
    for i, d in enumerate(douglas):
        trees.append(TreeRecord(id=f"D{i + 1}", species='DOUGLAS_VERT', diameter_cm=d,
                                plot_id='P1', timestamp_ms=i * 90_000))
    return trees


def _fmt(value, pattern="{:.2f}"):
    return "-" if value is None else pattern.format(value)


def print_synthesis(calc, species, trees, params):
    """Per-class synthesis table for one species."""
    catalog = get_species_catalog()
    rows, totals = calc.synthesize(species, calc.diameter_classes(), trees, params=params)

    table = Table(title=f"Synthèse {catalog.display_name(species)}", show_header=True,
                  header_style="bold")
    table.add_column("Classe", justify="right")
    table.add_column("N", justify="right")
    table.add_column("H moy (m)", justify="right")
    table.add_column("V (m³)", justify="right")
    table.add_column("Valeur (€)", justify="right")

    for row in rows:
        if row.count == 0:
            continue
        table.add_row(str(row.diameter_class), str(row.count), _fmt(row.mean_height, "{:.1f}"),
                      _fmt(row.volume_sum, "{:.3f}"), _fmt(row.value_sum, "{:.0f}"))

    table.add_section()
    table.add_row("Total", str(totals.n_total), _fmt(totals.mean_height, "{:.1f}"),
                  _fmt(totals.volume_total, "{:.3f}"),
                  f"complétude {totals.volume_completeness_pct:.0f} %")
    console.print(table)
    return rows, totals


def print_product_split(calc, trees, params):
    """Douglas volume split into products and valued at the market prices."""
    volume_by_product = {}
    diameters = []
    for tree in trees:
        if tree.species != 'DOUGLAS_VERT':
            continue
        volume = calc.volume_for_tree(tree)
        if volume is None:
            continue
        diameters.append(tree.diameter_cm)
        for product, share in split_volume_by_product(volume, tree.species, 'Résineux',
                                                      tree.diameter_cm).items():
            volume_by_product[product] = volume_by_product.get(product, 0.0) + share

    mean_diameter = int(sum(diameters) / len(diameters)) if diameters else 0
    breakdown = build_breakdown(params.prices, 'DOUGLAS_VERT', volume_by_product, mean_diameter)

    table = Table(title="Ventilation par produit (Douglas)", show_header=True, header_style="bold")
    table.add_column("Produit")
    table.add_column("V (m³)", justify="right")
    table.add_column("Prix (€/m³)", justify="right")
    table.add_column("Total (€)", justify="right")
    for row in breakdown:
        table.add_row(row.product, f"{row.volume_m3:.3f}", f"{row.price_per_m3:.0f}",
                      f"{row.total_eur:.0f}")
    console.print(table)


def print_stand_table(trees):
    """Pre-harvest stand table of the Douglas plot."""
    calc = StandBeforeHarvestCalculator.from_config()
    plot = [t for t in trees if t.plot_id == 'P1']
    result = calc.compute(plot, plot_area_m2=PLOT_AREA_M2, dominant_height=28.0,
                          class_heights={20: 18.0, 25: 21.0, 30: 24.0})

    table = Table(title="Peuplement avant coupe (placette P1)", show_header=True,
                  header_style="bold")
    table.add_column("Classe", justify="right")
    table.add_column("N/ha", justify="right")
    table.add_column("G/ha (m²)", justify="right")
    table.add_column("V (m³)", justify="right")
    table.add_column("Trituration (m³)", justify="right")
    for row in result.rows:
        if row.count == 0:
            continue
        table.add_row(str(row.diameter_class), f"{row.stems_per_ha:.0f}",
                      f"{row.basal_area_per_ha:.2f}", f"{row.volume:.3f}",
                      f"{row.tritu_volume:.3f}")
    console.print(table)

    totals = result.totals
    console.print(Panel(
        f"N/ha: {totals.stems_per_ha:.0f}   G/ha: {totals.basal_area_per_ha:.1f} m²   "
        f"V/ha: {totals.volume_per_ha:.0f} m³   S%: {totals.spacing_index_pct:.1f}",
        title="Totaux placette",
    ))


def print_sanity(trees, volume_total, value_total):
    """Input and aggregate checks over the whole marking."""
    warnings = SanityChecker.check_all_trees(trees)

    g_total = calculate_stand_basal_area(trees)
    ratio_vg = volume_total / g_total if g_total > 0 else None
    warnings += SanityChecker.check_aggregates(
        n_per_ha=len(trees) / PARCEL_AREA_HA,
        g_per_ha=g_total / PARCEL_AREA_HA,
        v_per_ha=volume_total / PARCEL_AREA_HA,
        revenue_per_ha=value_total / PARCEL_AREA_HA,
        surface_ha=PARCEL_AREA_HA,
        ratio_vg=ratio_vg,
    )

    if not warnings:
        console.print("[green]Aucune alerte de cohérence.[/green]")
        return

    table = Table(title="Contrôles de cohérence", show_header=True)
    table.add_column("Gravité")
    table.add_column("Domaine")
    table.add_column("Code")
    table.add_column("Arbre")
    table.add_column("Valeur", justify="right")
    colours = {'ERROR': 'red', 'WARNING': 'yellow', 'INFO': 'cyan'}
    for w in warnings:
        colour = colours[w.severity.value]
        table.add_row(f"[{colour}]{w.severity.value}[/{colour}]", w.domain.value, w.code,
                      w.tree_id or "-", _fmt(w.value))
    console.print(table)


def main():
    console.print(Panel("[bold]pycubage - synthèse de martelage[/bold]"))

    store = InMemoryParameterStore()
    seed_defaults(store)
    calc = ForestryCalculator(store)
    calc.save_tariff_selection(TariffSelection(method='ALGAN'))
    params = calc.load_synthesis_params()

    trees = build_trees()
    volume_total = 0.0
    value_total = 0.0
    for species in ('HETRE_COMMUN', 'DOUGLAS_VERT'):
        rows, totals = print_synthesis(calc, species, trees, params)
        volume_total += totals.volume_total or 0.0
        value_total += sum(r.value_sum for r in rows if r.value_sum is not None)
        console.print()

    print_product_split(calc, trees, params)
    console.print()
    print_stand_table(trees)
    console.print()
    print_sanity(trees, volume_total, value_total)


if __name__ == "__main__":
    main()
