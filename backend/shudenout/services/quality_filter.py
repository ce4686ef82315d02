from __future__ import annotations

import unicodedata
from typing import Iterable, List

from shudenout.models.domain import HotelItem

MIN_PRICE = 3000
MIN_RATING = 3.5

# Capsules, pods, dorms, hostels, net cafes, saunas: not a real room after the last train.
LOW_QUALITY_WORDS = (
    "カプセル", "capsule", "caps",
    "キャビン", "cabin",
    "ポッド", "pod",
    "ドミトリー", "dorm", "相部屋", "男女混合", "shared",
    "ホステル", "hostel", "ゲストハウス", "guest house", "guesthouse",
    "ネットカフェ", "net cafe", "netcafe", "漫画喫茶", "manga cafe",
    "コンパクト", "compact", "ミニマル", "minimal", "シンプル宿泊",
    "バックパッカー", "backpacker", "youth", "ユース",
    "簡易宿泊", "簡易ホテル", "格安宿泊", "ワンルーム宿泊",
    "サウナ", "sauna",
)


def normalize_text(text: str) -> str:
    # NFKC folds full-width latin/digits and the ideographic space to ASCII
    return unicodedata.normalize("NFKC", text).lower()


_NORMALIZED_WORDS = tuple(normalize_text(word) for word in LOW_QUALITY_WORDS)


def is_quality_hotel(hotel: HotelItem) -> bool:
    if hotel.price < MIN_PRICE:
        return False
    if hotel.rating and hotel.rating < MIN_RATING:
        return False
    name = normalize_text(hotel.name)
    return not any(word in name for word in _NORMALIZED_WORDS)


def filter_quality_hotels(hotels: Iterable[HotelItem]) -> List[HotelItem]:
    return [hotel for hotel in hotels if is_quality_hotel(hotel)]
