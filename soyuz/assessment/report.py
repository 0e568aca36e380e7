from __future__ import annotations

import csv
import datetime
import io
import typing as t

from soyuz.model import Assessment, DiscFactor, SoftSkillsResults

#: DISC questionnaire length, used as the denominator of factor percentages
DiscQuestions = 10

DiscNames = {
    DiscFactor.Dominance: "Dominance",
    DiscFactor.Influence: "Influence",
    DiscFactor.Steadiness: "Steadiness",
    DiscFactor.Conscientiousness: "Conscientiousness",
}

DiscDescriptions = {
    DiscFactor.Dominance: "Orientado para resultados, direto e determinado. Gosta de liderar e tomar decisões rápidas.",
    DiscFactor.Influence: "Sociável, otimista e persuasivo. Se destaca em comunicação e motivação de equipes.",
    DiscFactor.Steadiness: "Paciente, leal e colaborativo. Valoriza estabilidade e trabalho em equipe.",
    DiscFactor.Conscientiousness: "Analítico, preciso e sistemático. Prioriza qualidade e atenção aos detalhes.",
}

SkillLabels = {
    "communication": "Comunicação",
    "leadership": "Liderança",
    "teamwork": "Trabalho em Equipe",
    "problem_solving": "Resolução de Problemas",
    "adaptability": "Adaptabilidade",
    "creativity": "Criatividade",
    "time_management": "Gestão de Tempo",
    "negotiation": "Negociação",
}

CsvHeader = ("ID", "Tipo", "Status", "Data_Criacao", "Data_Conclusao", "Resultados")


class DiscProfile(t.NamedTuple):
    factor: DiscFactor
    name: str
    description: str
    percentage: float


class AssessmentReport(t.NamedTuple):
    """Aggregated results of one assessment, ready to show or export."""

    assessment: Assessment
    disc: DiscProfile | None
    disc_percentages: dict[DiscFactor, float] | None
    soft_skills: SoftSkillsResults | None
    soft_skills_average: float | None
    sjt_average: float | None

    @classmethod
    def from_assessment(cls, assessment: Assessment, disc_questions: int = DiscQuestions) -> AssessmentReport:
        disc = profile = None
        if (d := assessment.disc_results) is not None:
            # answers beyond the nominal questionnaire length still add up to 100%
            disc = d.percentages(max(disc_questions, d.total))
            factor = d.primary_factor
            profile = DiscProfile(factor, DiscNames[factor], DiscDescriptions[factor], disc[factor])

        skills = assessment.soft_skills_results
        sjt = assessment.sjt_results
        return cls(
            assessment=assessment,
            disc=profile,
            disc_percentages=disc,
            soft_skills=skills,
            soft_skills_average=skills.average if skills else None,
            sjt_average=sjt.average if sjt else None,
        )

    def filename(self, extension: str) -> str:
        a = self.assessment
        return f"assessment-{a.type.value}-{a.create_time.date().isoformat()}.{extension}"

    def summary_lines(self) -> list[str]:
        lines: list[str] = []
        if self.disc is not None and self.disc_percentages is not None:
            lines.append(f"Perfil DISC: {self.disc.name} ({self.disc.percentage:g}%)")
            lines.append(f"  {self.disc.description}")
            lines.extend(f"  {f.value}: {pct:g}%" for f, pct in self.disc_percentages.items())
        if self.soft_skills is not None:
            lines.append(f"Soft Skills (média {self.soft_skills_average:g}/10):")
            lines.extend(f"  {SkillLabels[name]}: {score}/10" for name, score in self.soft_skills.ratings.items())
        if self.sjt_average is not None:
            lines.append(f"Julgamento Situacional (média {self.sjt_average:g}/10)")
        return lines or ["Nenhum resultado disponível"]

    def render_text(self, now: datetime.datetime | None = None) -> str:
        a = self.assessment
        now = now or datetime.datetime.now(datetime.UTC)
        completed = a.completed_at.strftime("%d/%m/%Y") if a.completed_at else "N/A"
        lines = [
            "RELATÓRIO DE AVALIAÇÃO",
            "=====================",
            "",
            "Informações Gerais:",
            f"- ID: {a.assessment_id}",
            f"- Tipo: {a.type.label}",
            f"- Status: {a.status.label}",
            f"- Data de Criação: {a.create_time.strftime('%d/%m/%Y')}",
            f"- Data de Conclusão: {completed}",
            "",
            "Resultados:",
            *self.summary_lines(),
            "",
            "---",
            f"Relatório gerado em: {now.strftime('%d/%m/%Y às %H:%M:%S')}",
        ]
        return "\n".join(lines) + "\n"

    def render_csv(self) -> str:
        a = self.assessment
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(CsvHeader)
        writer.writerow(
            (
                a.assessment_id,
                a.type.label,
                a.status.label,
                a.create_time.date().isoformat(),
                a.completed_at.date().isoformat() if a.completed_at else "",
                "; ".join(line.strip() for line in self.summary_lines()),
            )
        )
        return buf.getvalue()
