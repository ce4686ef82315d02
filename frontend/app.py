import os

import streamlit as st

from shudenout.client import UI_MESSAGES, HotelSearchClient, UiState
from shudenout.tools.areas import AREAS, DEFAULT_AREA

BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:8000")

client = HotelSearchClient(BACKEND_URL)

st.set_page_config(page_title="Hotels after the last train", layout="wide")
st.title("Rooms you can book tonight")
st.caption("Backend: FastAPI | UI: Streamlit | Availability: Rakuten Travel")

area_keys = list(AREAS.keys())
area = st.sidebar.selectbox(
    "Area",
    options=area_keys,
    index=area_keys.index(DEFAULT_AREA),
    format_func=lambda key: f"{AREAS[key].display_name} ({key})",
)
adult_num = st.sidebar.number_input("Guests", min_value=1, max_value=9, value=2)

with st.spinner("Searching..."):
    result = client.search(area, adult_num=int(adult_num))

if result.ui_state == UiState.ok:
    st.caption(f"Found within {result.radius} km")
    cols = st.columns(3)
    for index, item in enumerate(result.items):
        with cols[index % 3]:
            st.markdown(f"**{item.name}**")
            if item.price > 0:
                st.markdown(f"¥{item.price:,}")
            if item.walking_minutes:
                st.caption(f"{item.walking_minutes} min walk · {item.nearest_station}")
            if item.affiliate_url:
                st.markdown(f"[See vacancies]({item.affiliate_url})")
elif result.ui_state in (UiState.param_invalid, UiState.rate_limit):
    st.warning(UI_MESSAGES[result.ui_state])
elif result.ui_state in (UiState.server_error, UiState.fetch_error):
    st.error(UI_MESSAGES[result.ui_state])
else:
    st.info(UI_MESSAGES[result.ui_state])
