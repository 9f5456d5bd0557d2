import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from markupsafe import Markup
from starlette.middleware.sessions import SessionMiddleware

from .cart import add_item, cart_total, get_cart, line_item, remove_item, save_cart, update_quantity
from .checkout import (
    clean_form,
    format_order,
    format_price,
    normalize_phone,
    notify_admins,
    parse_admin_ids,
    validate_checkout,
)
from .dimensions import HEIGHTS, SIZES, SLOT_TITLES
from .loader import CatalogSources, Runtime
from .state import (
    ChangeHeight,
    ChangeSize,
    ChangeSlotItem,
    InvalidAction,
    default_state,
    derive_view,
    encode_state,
    reduce,
    restore_state,
)

# =========================
# LOGGING
# =========================
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
log = logging.getLogger("configurator")


# =========================
# ENV
# =========================
SESSION_SECRET = os.getenv("SESSION_SECRET", "change-me")
SESSION_HTTPS_ONLY = os.getenv("SESSION_HTTPS_ONLY", "1").strip().lower() not in ("0", "false", "no")
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "").strip()
ADMIN_TG_IDS_RAW = os.getenv("ADMIN_TG_IDS", "").strip()

templates = Jinja2Templates(directory=str(Path(__file__).with_name("templates")))
templates.env.filters["price"] = format_price


def description_html(text):
    """Описания из каталога могут содержать HTML; переносы строк — "\\n" или "|"."""
    return Markup(str(text or "").replace("\n", "<br>").replace("|", "<br>"))


templates.env.filters["description"] = description_html


class CatalogUnavailable(Exception):
    pass


@asynccontextmanager
async def lifespan(app: FastAPI):
    runtime = app.state.runtime
    try:
        await runtime.load(app.state.sources)
        yield
    finally:
        runtime.close()


def get_bundle(request: Request):
    runtime = request.app.state.runtime
    if not runtime.ready:
        raise CatalogUnavailable(runtime.error or "catalog is not loaded")
    return runtime.bundle


def configure_url(path: str) -> str:
    return f"/configure/{path}"


def redirect_to(state, bundle):
    return RedirectResponse(configure_url(encode_state(state, bundle.mapping)), status_code=303)


def apply_action(request: Request, config: str, action):
    bundle = get_bundle(request)
    state, restored = restore_state(config, bundle.catalog, bundle.mapping)
    if not restored:
        log.info("action %r on unusable path %r, applying to defaults", action, config)
    try:
        state = reduce(state, action, bundle.catalog)
    except InvalidAction as e:
        raise HTTPException(status_code=400, detail=str(e))
    return redirect_to(state, bundle)


def create_app(
    sources: CatalogSources = None,
    session_secret: str = SESSION_SECRET,
    https_only: bool = SESSION_HTTPS_ONLY,
    bot_token: str = TELEGRAM_BOT_TOKEN,
    admin_ids=None,
) -> FastAPI:
    app = FastAPI(title="Mattress configurator", lifespan=lifespan)
    app.add_middleware(SessionMiddleware, secret_key=session_secret, same_site="lax", https_only=https_only)

    app.state.runtime = Runtime()
    app.state.sources = sources or CatalogSources.from_env()
    app.state.bot_token = bot_token
    app.state.admin_ids = parse_admin_ids(ADMIN_TG_IDS_RAW) if admin_ids is None else set(admin_ids)

    @app.exception_handler(CatalogUnavailable)
    async def catalog_unavailable(request: Request, exc: CatalogUnavailable):
        log.warning("request %s while catalog unavailable: %s", request.url.path, exc)
        return templates.TemplateResponse(
            request,
            "error.html",
            {"message": "Ошибка загрузки конфигурации"},
            status_code=503,
        )

    # ----------------------
    # CONFIGURATOR
    # ----------------------
    @app.get("/")
    @app.get("/configure")
    def root(request: Request):
        bundle = get_bundle(request)
        return redirect_to(default_state(bundle.catalog), bundle)

    @app.get("/configure/{config}", response_class=HTMLResponse)
    def configure_page(request: Request, config: str):
        bundle = get_bundle(request)
        state, restored = restore_state(config, bundle.catalog, bundle.mapping)
        view = derive_view(state, bundle.catalog, bundle.mapping, bundle.descriptions)

        # адресная строка всегда показывает каноническую конфигурацию
        if view.path != config:
            if not restored:
                log.info("unusable configuration path %r, falling back to defaults", config)
            return RedirectResponse(configure_url(view.path), status_code=303)

        return templates.TemplateResponse(
            request,
            "configurator.html",
            {
                "view": view,
                "sizes": SIZES,
                "heights": HEIGHTS,
                "slot_titles": SLOT_TITLES,
                "cart_count": len(get_cart(request.session)),
            },
        )

    @app.get("/api/configure/{config}")
    def configure_api(request: Request, config: str):
        bundle = get_bundle(request)
        state, restored = restore_state(config, bundle.catalog, bundle.mapping)
        view = derive_view(state, bundle.catalog, bundle.mapping, bundle.descriptions)
        payload = view.to_dict()
        payload["restored"] = restored
        return JSONResponse(payload)

    @app.post("/configure/{config}/size")
    def change_size(request: Request, config: str, size: str = Form(...)):
        return apply_action(request, config, ChangeSize(size))

    @app.post("/configure/{config}/height")
    def change_height(request: Request, config: str, height: int = Form(...)):
        return apply_action(request, config, ChangeHeight(height))

    @app.post("/configure/{config}/slot")
    def change_slot(request: Request, config: str, slot: str = Form(...), item_id: str = Form(...)):
        return apply_action(request, config, ChangeSlotItem(slot, item_id))

    # ----------------------
    # CART
    # ----------------------
    def render_cart(request: Request, errors=None, form=None, ordered=False, status_code=200):
        cart = get_cart(request.session)
        return templates.TemplateResponse(
            request,
            "cart.html",
            {
                "cart": cart,
                "total": cart_total(cart),
                "errors": errors or {},
                "form": form or {},
                "ordered": ordered,
            },
            status_code=status_code,
        )

    @app.get("/cart", response_class=HTMLResponse)
    def cart_page(request: Request, ordered: int = 0):
        return render_cart(request, ordered=bool(ordered))

    @app.post("/cart/add")
    def cart_add(request: Request, config: str = Form(...)):
        bundle = get_bundle(request)
        state, restored = restore_state(config, bundle.catalog, bundle.mapping)
        view = derive_view(state, bundle.catalog, bundle.mapping, bundle.descriptions)
        # в корзину попадает только ровно та конфигурация, что была на странице
        if not restored or view.path != config:
            log.info("cart add rejected: %r restores as %r", config, view.path)
            raise HTTPException(status_code=400, detail="Конфигурация устарела, обновите страницу")
        if not view.complete:
            raise HTTPException(status_code=409, detail="Конфигурация неполная")

        cart = add_item(get_cart(request.session), line_item(view))
        save_cart(request.session, cart)
        return RedirectResponse("/cart", status_code=303)

    @app.post("/cart/update")
    def cart_update(request: Request, index: int = Form(...), quantity: int = Form(...)):
        save_cart(request.session, update_quantity(get_cart(request.session), index, quantity))
        return RedirectResponse("/cart", status_code=303)

    @app.post("/cart/remove")
    def cart_remove(request: Request, index: int = Form(...)):
        save_cart(request.session, remove_item(get_cart(request.session), index))
        return RedirectResponse("/cart", status_code=303)

    @app.post("/cart/checkout")
    async def cart_checkout(request: Request):
        cart = get_cart(request.session)
        if not cart:
            return RedirectResponse("/cart", status_code=303)

        data = clean_form(await request.form())
        errors = validate_checkout(data)
        if errors:
            return render_cart(request, errors=errors, form=data, status_code=400)

        data["phone"] = normalize_phone(data["phone"])
        text = format_order(data, cart)
        log.info("order submitted: %s, %d items, total %s", data["phone"], len(cart), cart_total(cart))
        await notify_admins(text, request.app.state.bot_token, request.app.state.admin_ids)

        save_cart(request.session, [])
        return RedirectResponse("/cart?ordered=1", status_code=303)

    return app


app = create_app()
