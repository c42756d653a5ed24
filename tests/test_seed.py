from decimal import Decimal

from order_tracking.seed import print_reports, seed


def test_seed_loads_sample_store(database, catalog, reports, capsys):
    orders = seed(database)

    assert [o.total_amount for o in orders] == [Decimal("1350.00"), Decimal("150.00")]
    assert {p.name: p.stock for p in catalog.list()} == {"Laptop": 49, "Headphones": 98, "Keyboard": 200}

    print_reports(reports)
    out = capsys.readouterr().out
    assert "Total revenue: 1500.00" in out
    assert "Average order value: 750.00" in out
    assert "Charlie Brown: 0" in out
    assert "Products with stock below 10: none" in out
