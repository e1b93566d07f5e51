from collections import namedtuple

import pytest
from protean import current_domain

from checkout.catalogue.book import Book
from checkout.catalogue.cache import CacheKey, get_cache
from checkout.catalogue.reader import load_books
from checkout.catalogue.stock import check_stock, withdraw_stock
from checkout.errors import StockConflict

Line = namedtuple("Line", "book_id quantity")


class TestLoadBooks:
    def test_unknown_ids_are_absent(self, make_book):
        book = make_book()

        snapshots = load_books([str(book.id), "missing"])

        assert list(snapshots) == [str(book.id)]
        assert snapshots[str(book.id)].price == 250.0

    def test_snapshots_are_cached(self, make_book):
        book = make_book(stock=5)
        load_books([str(book.id)])

        assert get_cache().get(CacheKey("book", str(book.id))).stock == 5

    def test_withdrawal_invalidates_the_cached_snapshot(self, make_book):
        book = make_book(stock=5)
        load_books([str(book.id)])

        current_domain.repository_for(Book).withdraw(str(book.id), 2, "ord-1")

        assert get_cache().get(CacheKey("book", str(book.id))) is None
        assert load_books([str(book.id)])[str(book.id)].stock == 3

    def test_snapshot_read_mid_checkout_is_dropped_after_commit(self, make_book, fill_cart, monkeypatch):
        from checkout.catalogue import stock
        from checkout.order.initiation import InitiateOrder

        book = make_book(stock=5)
        fill_cart((book, 2))

        def withdraw_then_read(items, order_id):
            stock.withdraw_stock(items, order_id)
            load_books([str(book.id)])

        monkeypatch.setattr("checkout.order.initiation.withdraw_stock", withdraw_then_read)

        current_domain.process(
            InitiateOrder(customer_id="cust-001", payment_method="CASH_ON_DELIVERY"),
            asynchronous=False,
        )

        assert get_cache().get(CacheKey("book", str(book.id))) is None
        assert load_books([str(book.id)])[str(book.id)].stock == 3

    def test_restock_invalidates_the_cached_snapshot(self, make_book):
        book = make_book(stock=1)
        load_books([str(book.id)])

        repo = current_domain.repository_for(Book)
        fresh = repo.get(book.id)
        fresh.restock(4, "Returned copies")
        repo.add(fresh)

        assert get_cache().get(CacheKey("book", str(book.id))) is None
        assert load_books([str(book.id)])[str(book.id)].stock == 5


class TestStock:
    def test_check_stock_reports_first_short_line(self, make_book):
        plenty = make_book(title="Plenty", stock=10)
        scarce = make_book(title="Scarce", stock=1)
        books = load_books([str(plenty.id), str(scarce.id)])

        with pytest.raises(StockConflict) as exc:
            check_stock([Line(str(plenty.id), 2), Line(str(scarce.id), 3)], books)

        assert exc.value.details["book_id"] == str(scarce.id)
        assert exc.value.details["available"] == 1

    def test_withdraw_stock_takes_every_line(self, make_book):
        first = make_book(title="First", stock=4)
        second = make_book(title="Second", stock=2)

        withdraw_stock([Line(str(first.id), 1), Line(str(second.id), 2)], "ord-1")

        repo = current_domain.repository_for(Book)
        assert repo.get(first.id).stock == 3
        assert repo.get(second.id).stock == 0


class TestFindMany:
    def test_finds_books_beyond_the_first_page(self, make_book):
        books = [make_book(title=f"Volume {n}", stock=1) for n in range(105)]
        wanted = [str(books[0].id), str(books[-1].id)]

        found = current_domain.repository_for(Book).find_many(wanted)

        assert sorted(str(b.id) for b in found) == sorted(wanted)
        assert set(load_books([str(books[-1].id)])) == {str(books[-1].id)}

    def test_checkout_of_a_late_catalogue_entry(self, make_book, fill_cart):
        from checkout.order.initiation import InitiateOrder

        books = [make_book(title=f"Volume {n}", stock=1) for n in range(105)]
        fill_cart((books[-1], 1))

        result = current_domain.process(
            InitiateOrder(customer_id="cust-001", payment_method="CASH_ON_DELIVERY"),
            asynchronous=False,
        )

        assert result.order_id
        assert current_domain.repository_for(Book).get(books[-1].id).stock == 0

    def test_no_ids(self):
        assert current_domain.repository_for(Book).find_many([]) == []
