# tests/fixtures.py
"""Trimmed-down upstream pages used by the source and API tests."""

from __future__ import annotations

HOROSKOP_HTML = """
<html><body>
<h1>Beran</h1>
<div class="date">1. 5. 2024</div>
<h2>Horoskop na dnes</h2>
<p>Čeká vás &quot;úspěšný&quot; den.</p>
<div>Láska a přátelství</div><p>Romantika.</p>
<div>Peníze a práce</div><p>Prémie.</p>
<div>Rodina a vztahy</div><p>Klid.</p>
<div>Zdraví a kondice</div><p>Pohyb.</p>
<div>Vhodné aktivity na dnes</div><p>Procházka.</p>
</body></html>
"""

HOROSKOP_BROKEN_HTML = "<html><body><h1>Beran</h1><p>Údržba webu.</p></body></html>"

SVATKY_HTML = """<table>
<tr><td class="td-vdz">Předevčírem</td>
<td class="td-jmeno">má svátek <a href="/jmeno/filip">Filip</a></td></tr>
<tr><td class="td-vdz">Včera</td>
<td class="td-jmeno">má svátek <a href="/jmeno/zikmund">Zikmund</a></td></tr>
<tr><td class="td-vdz">Dnes</td>
<td class="td-jmeno">má svátek <a href="/jmeno/lukas">Lukáš</a></td></tr>
<tr><td class="td-vdz">Zítra</td>
<td class="td-jmeno">má svátek <a href="/jmeno/jiri">Jiří</a></td></tr>
</table>
"""

# As served upstream
SVATKY_BYTES = SVATKY_HTML.encode("iso-8859-2")

POCASI_HTML = """
<html><body>
<h1><span id="title-loc">Praha</span></h1>
<div id="predpoved-dnes" class="day">
  <span class="date">St 1. 5.</span>
  <div class="info">
    <p>Polojasno</p>
  </div>
  <div class="now"><span class="temp"><span class="value">14</span><span class="sup">&deg;C</span></span></div>
  <div class="part"><span class="temp">9</span><span class="sup">&deg;C</span><span class="dayTime">Ráno</span></div>
  <div class="part"><span class="temp">17</span><span class="sup">&deg;C</span><span class="dayTime">Odpoledne</span></div>
  <div class="part"><span class="temp">-2</span><span class="sup">&deg;C</span><span class="dayTime">V Noci</span></div>
</div>
<div id="predpoved-zitra" class="day">
  <span class="date">Čt 2. 5.</span>
  <div class="info"><p>Déšť</p></div>
  <div class="atDay"><span class="temp"><span class="value">15</span><span class="sup">&deg;C</span></span></div>
  <div class="atNight"><span class="temp"><span class="value">6</span><span class="sup">&deg;C</span></span></div>
</div>
</body></html>
"""

MISTNOST_HTML = """
<html><body>
<div>Místnost: <strong>Pokec u kávy <br></strong></div>
<table>
<tr><td>Popis</td>
<td>Místnost pro &quot;všechny&quot;</td></tr>
<tr><td>Stálý správce</td><td><a target="_blank" href="http://profil.chatujme.cz/alice">alice</a>, <a target="_blank" href="http://profil.chatujme.cz/bob">bob</a></td></tr>
<tr><td>Celkový čas místnosti</td><td>12,345 hod</td></tr>
<tr><td class="activeDay">Pondělí</td><td class="activeDay">5 hod</td></tr>
<tr><td>Web místnosti</td><td><a href="https://example.cz">web</a></td></tr>
<tr><td>Kategorie :</td><td><strong>(Pokec <span class="glyphicon glyphicon-ok-sign"></span> limit 10 hod)</strong></td></tr>
<tr><td>Založeno</td><td><strong> | 1. 1. 2010 (před 14 lety)</strong></td></tr>
</table>
</body></html>
"""

MISTNOST_REDIRECT_HTML = "<html><head><title>Redirect</title></head></html>"
