import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Dict, List, Optional

from stockboard.config import load_settings
from stockboard.identity import EDITOR, ROLE_RANK
from stockboard.products import PRODUCT_FIELDS
from stockboard.service import Dashboard

alt.data_transformers.disable_max_rows()

LEVEL_COLORS = {"in": "#16a34a", "low": "#f59e0b", "out": "#dc2626"}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def unwrap(envelope: Dict, empty=None):
    if envelope.get("ok"):
        return envelope.get("data")
    st.error(envelope.get("error") or "Request failed")
    return empty


def level_chart(df: pd.DataFrame) -> alt.Chart:
    counts = df["qtyLevel"].value_counts().reindex(list(LEVEL_COLORS), fill_value=0).reset_index()
    counts.columns = ["qtyLevel", "count"]
    return (
        alt.Chart(counts)
        .mark_bar()
        .encode(
            x=alt.X("qtyLevel:N", title="Stock level", sort=list(LEVEL_COLORS)),
            y=alt.Y("count:Q", title="Products"),
            color=alt.Color(
                "qtyLevel:N",
                scale=alt.Scale(domain=list(LEVEL_COLORS), range=list(LEVEL_COLORS.values())),
                legend=None,
            ),
            tooltip=["qtyLevel", "count"],
        )
    )


# ---------- UI setup ----------
st.set_page_config(page_title="Stockboard", layout="wide")
inject_base_styles()

settings = load_settings()
dashboard = Dashboard(settings)
email = str(st.context.headers.get(settings.identity_header) or "").strip()
me = unwrap(dashboard.who_am_i(email), {"email": email, "role": "viewer", "displayName": "", "avatar": ""})
can_edit = ROLE_RANK.get(me["role"], 0) >= ROLE_RANK[EDITOR]

st.markdown("<div class='app-top-bar'><div class='page-title'>Inventory Dashboard</div></div>", unsafe_allow_html=True)
st.caption(f"{me['displayName'] or me['email'] or 'Anonymous'} · role: {me['role']}")

categories: List[Dict] = unwrap(dashboard.get_categories(), [])

# ----- Sidebar: category + filters -----
with st.sidebar:
    st.markdown("### Category")
    labels = {c["tab"]: c["title"] for c in categories}
    tab: Optional[str] = st.selectbox("Category", options=list(labels), format_func=lambda t: labels[t]) if labels else None
    st.markdown("---")
    st.markdown("### Filters")
    search = st.text_input("Search SKU / brand / series / model", "")
    only_favorites = st.checkbox("Only favorites", value=False)
    sort_field = st.selectbox("Sort by", ["(none)"] + PRODUCT_FIELDS)
    sort_direction = st.radio("Direction", ["asc", "desc"], horizontal=True)

if not tab:
    st.info("No categories configured.")
    st.stop()

options = {"search": search, "onlyFavorites": only_favorites}
if sort_field != "(none)":
    options["sort"] = {"field": sort_field, "direction": sort_direction}
listing = unwrap(dashboard.list_products(email, tab, options), {"tab": tab, "count": 0, "products": []})
products = pd.DataFrame(listing["products"], columns=PRODUCT_FIELDS)

with card(f"{labels.get(tab, tab)} · {listing['count']} products"):
    if products.empty:
        st.info("No products match the selected filters.")
    else:
        cols = st.columns([3, 1])
        cols[0].dataframe(products, use_container_width=True, hide_index=True)
        cols[1].altair_chart(level_chart(products), use_container_width=True)

if email and not products.empty:
    with card("Favorites"):
        # Form widgets do not rerun the page; the checkbox default depends on this pick.
        fav_sku = st.selectbox("SKU", options=products["sku"].tolist(), key="fav_sku")
        with st.form("favorite_form"):
            current = bool(products.loc[products["sku"] == fav_sku, "favorite"].iloc[0])
            fav_state = st.checkbox("Favorite", value=current)
            if st.form_submit_button("Save favorite"):
                if unwrap(dashboard.set_favorite(email, fav_sku, fav_state)) is not None:
                    st.rerun()

if can_edit and not products.empty:
    with card("Edit product"):
        with st.form("edit_form"):
            edit_sku = st.selectbox("SKU", options=products["sku"].tolist(), key="edit_sku")
            c1, c2, c3, c4 = st.columns(4)
            fields = {
                "salesPrice": c1.text_input("Sales price", ""),
                "qty": c2.text_input("Qty", ""),
                "market": c3.text_input("Market", ""),
                "retail": c4.text_input("Retail", ""),
            }
            note = st.text_input("Note", "")
            if st.form_submit_button("Save changes"):
                payload = {"tab": tab, "sku": edit_sku}
                payload.update({k: v for k, v in fields.items() if v.strip()})
                if note.strip():
                    payload["note"] = note
                result = unwrap(dashboard.update_product(email, payload))
                if result is not None:
                    st.success(f"Updated {', '.join(result['updated']) or 'nothing'} on {edit_sku}")
