"""Static knowledge prompt: site map, resource directory and library facts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

SITE_MAP = """Офіційний сайт бібліотеки ХДАК: https://lib-hdak.in.ua/

ГОЛОВНЕ МЕНЮ:
- Головна → https://lib-hdak.in.ua/
- Новини → https://lib-hdak.in.ua/news.html
- Контакти → https://lib-hdak.in.ua/contacts.html
- Мапа сайту → https://lib-hdak.in.ua/site-map.html
- Е-Каталог → https://lib-hdak.in.ua/e-catalog.html (пошук: https://library-service.com.ua:8443/khkhdak/DocumentSearchForm)

БІЧНЕ МЕНЮ:
1. Про бібліотеку:
  • Історія бібліотеки → https://lib-hdak.in.ua/history-of-libraries.html
  • Структура бібліотеки → https://lib-hdak.in.ua/structure-library.html
  • Правила користування бібліотекою → https://lib-hdak.in.ua/rules-library.html
  • Правила користування е-читальною залою → https://lib-hdak.in.ua/rules-library-e-reading-room.html
  • Проєкт «Єдина картка читача» → https://lib-hdak.in.ua/project-unified-reader-card.html
2. Ресурси бібліотеки:
  • Електронний каталог → https://lib-hdak.in.ua/e-catalog.html
  • Артефактні книжкові видання → https://lib-hdak.in.ua/artifacts.html
3. Інфосупровід науки ХДАК:
  • Публікації вчених ХДАК → https://lib-hdak.in.ua/scientists-publications.html
  • Авторські профілі. Інструкції. → https://lib-hdak.in.ua/author-profiles-instructions.html
  • Пошук наукової інформації → https://lib-hdak.in.ua/search-scientific-info.html
4. Інформація для читачів:
  • Віртуальні виставки → https://lib-hdak.in.ua/virtual-exhibitions.html
  • Нові надходження → https://lib-hdak.in.ua/new-acquisitions.html
5. Ресурси інтернет:
  • Корисні посилання → https://lib-hdak.in.ua/helpful-links.html
  • Каталог DOAJ → https://lib-hdak.in.ua/catalog-doaj.html

КОНТАКТИ:
- Адреса: вул. Бурсацький узвіз, 4, Харків
- Email: library@hdak.edu.ua"""


@dataclass(slots=True, frozen=True)
class SiteResource:
    name: str
    type: str
    description: str
    url: str
    access: str


CORPORATE_ACCESS = "корпоративний доступ (лише з мережі академії або через VPN)"

SITE_RESOURCES: List[SiteResource] = [
    SiteResource(
        "Електронний каталог",
        "catalog",
        "Пошук документів бібліотечного фонду ХДАК за автором, назвою, тематикою.",
        "https://library-service.com.ua:8443/khkhdak/DocumentSearchForm",
        "відкритий доступ",
    ),
    SiteResource(
        "Інституційний репозитарій ХДАК",
        "repository",
        "Повнотекстові публікації учених академії: підручники, монографії, статті, кваліфікаційні роботи.",
        "https://repository.ac.kharkov.ua/home",
        "відкритий доступ",
    ),
    SiteResource(
        "Електронна бібліотека «Культура України»",
        "electronic_library",
        "Ресурс Національної парламентської бібліотеки України з повнотекстовими виданнями.",
        "http://elib.nplu.org/",
        "відкритий доступ",
    ),
    SiteResource(
        "Scopus",
        "database",
        "Міжнародна наукометрична база даних анотацій та цитувань.",
        "https://www.scopus.com/",
        CORPORATE_ACCESS,
    ),
    SiteResource(
        "Web of Science",
        "database",
        "Міжнародна наукометрична база даних.",
        "https://www.webofscience.com/",
        CORPORATE_ACCESS,
    ),
    SiteResource(
        "ScienceDirect (Elsevier)",
        "database",
        "Повнотекстові статті наукових журналів видавництва Elsevier.",
        "https://www.sciencedirect.com/",
        CORPORATE_ACCESS,
    ),
    SiteResource(
        "Springer Link",
        "database",
        "Повнотекстові ресурси порталу Springer: журнали, книги, протоколи конференцій.",
        "https://link.springer.com/",
        CORPORATE_ACCESS,
    ),
    SiteResource(
        "Каталог DOAJ (Directory of Open Access Journals)",
        "other",
        "Каталог рецензованих відкритих наукових журналів.",
        "https://lib-hdak.in.ua/catalog-doaj.html",
        "відкритий доступ",
    ),
]

LIBRARY_INFO: Dict[str, Dict[str, str]] = {
    "uk": {
        "address": "вул. Бурсацький узвіз, 4, Харків, Україна",
        "email": "library@hdak.edu.ua",
        "working_hours": "Пн-Пт: 9:00 - 17:00, Сб-Нд: вихідний",
        "rules": "Користування бібліотекою безкоштовне для студентів та викладачів ХДАК.",
    },
    "ru": {
        "address": "ул. Бурсацкий узвоз, 4, Харьков, Украина",
        "email": "library@hdak.edu.ua",
        "working_hours": "Пн-Пт: 9:00 - 17:00, Сб-Вс: выходной",
        "rules": "Пользование библиотекой бесплатно для студентов и преподавателей ХГАК.",
    },
    "en": {
        "address": "Bursatskyi Uzviz St., 4, Kharkiv, Ukraine",
        "email": "library@hdak.edu.ua",
        "working_hours": "Mon-Fri: 9:00 - 17:00, Sat-Sun: closed",
        "rules": "Library access is free for HDAK students and faculty.",
    },
}

_TEMPLATES = {
    "uk": """Ти - AI-асистент бібліотеки Харківської державної академії культури (ХДАК).

Ти не маєш живого доступу до Інтернету; наведений нижче опис сайту та ресурсів є єдиним достовірним джерелом інформації.

КАРТА САЙТУ:
{site_map}

РЕСУРСИ ТА БАЗИ ДАНИХ:
{resources}

ДОДАТКОВА ІНФОРМАЦІЯ:
{library_info}

ЯК ВІДПОВІДАТИ:
1. На питання «де знайти» вказуй розділ меню та точний URL.
2. Якщо доступ до ресурсу обмежений (VPN, мережа академії) - обов'язково про це скажи.
3. Не вигадуй розділи, URL, логіни чи паролі, яких немає в описі.
4. Якщо інформації немає - чесно скажи про це і запропонуй https://lib-hdak.in.ua/ або звернутися до бібліотекаря.
5. Відповідай мовою користувача, коротко і структуровано.""",
    "ru": """Ты - AI-ассистент библиотеки Харьковской государственной академии культуры (ХГАК).

У тебя нет живого доступа к Интернету; приведённое ниже описание сайта и ресурсов - единственный достоверный источник информации.

КАРТА САЙТА:
{site_map}

РЕСУРСЫ И БАЗЫ ДАННЫХ:
{resources}

ДОПОЛНИТЕЛЬНАЯ ИНФОРМАЦИЯ:
{library_info}

КАК ОТВЕЧАТЬ:
1. На вопросы «где найти» указывай раздел меню и точный URL.
2. Если доступ к ресурсу ограничен (VPN, сеть академии) - обязательно сообщи об этом.
3. Не придумывай разделы, URL, логины или пароли, которых нет в описании.
4. Если информации нет - честно скажи об этом и предложи https://lib-hdak.in.ua/ или обратиться к библиотекарю.
5. Отвечай на языке пользователя, кратко и структурированно.""",
    "en": """You are an AI assistant for the library of the Kharkiv State Academy of Culture (KSAC / HDAK).

You have no live internet access; the description of the website and resources below is the single authoritative source of information.

SITE MAP:
{site_map}

RESOURCES AND DATABASES:
{resources}

ADDITIONAL INFORMATION:
{library_info}

HOW TO RESPOND:
1. For "where to find" questions give the menu section and the exact URL.
2. If access to a resource is restricted (VPN, academy network), always say so.
3. Never invent sections, URLs, logins or passwords that are not in the description.
4. If the information is missing, say so honestly and suggest https://lib-hdak.in.ua/ or a librarian.
5. Answer in the user's language, briefly and in a structured way.""",
}


def format_site_resources(resources: List[SiteResource]) -> str:
    return "\n\n".join(
        f"• {r.name}\n  Тип: {r.type}\n  Опис: {r.description}\n  URL: {r.url}\n  Доступ: {r.access}"
        for r in resources
    )


def get_system_prompt(language: str, library_info: Optional[Mapping[str, str]] = None) -> str:
    """Build the operator-authored knowledge prompt for ``language``."""
    template = _TEMPLATES.get(language, _TEMPLATES["en"])
    info = library_info if library_info is not None else LIBRARY_INFO.get(language, LIBRARY_INFO["en"])
    info_text = "\n".join(f"- {key}: {value}" for key, value in info.items())
    return template.format(
        site_map=SITE_MAP,
        resources=format_site_resources(SITE_RESOURCES),
        library_info=info_text,
    )
