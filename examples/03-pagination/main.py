"""
Pagination Example

ENABLE_PAGINATION adds `nextToken` and `amount` to the query and an optional
`nextToken` to the response. Callers keep passing nextToken back until the
response omits it.

Run: python examples/03-pagination/main.py
Then: curl 'localhost:8000/catalog/items?amount=2'
"""

from apicontract import API, Settings, make_app
from apicontract.app import serve

ITEMS = [f"item-{i}" for i in range(7)]


class ListItemsAPI(API):
    METHOD = "GET"
    PATH = "/items"
    DESC = "Lists catalog items, a page at a time"
    ENABLE_PAGINATION = True
    RESPONSE = {"items": list[str]}

    async def compute_response(self, req):
        start = int(req.query.nextToken or 0)
        end = start + req.query.amount
        page = {"items": ITEMS[start:end]}
        if end < len(ITEMS):
            page["nextToken"] = str(end)
        return page


app = make_app("catalog", [ListItemsAPI], settings=Settings(service_name="catalog"))


if __name__ == "__main__":
    serve(app)
